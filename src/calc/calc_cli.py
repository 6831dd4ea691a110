"""
CALC CLI Entrypoint.

This module provides the command-line driver for validating CALC programs.

Features:
    - Validate one or more `.calc` files, or an inline source string.
    - Print `Accept:<tree>` or the scanning/syntax error for each input.
    - Optional JSON output and strict end-of-input checking.

Example usage:
    calc program.calc other.calc
    calc -s "x=5;$$"
    calc --strict --json program.calc

Exit status:
    0 if every input is accepted, 1 if any input is rejected, 2 if a file cannot be read.

Functions:
    run_calc(source: str, is_string: bool = False, options: ParserOptions | None = None) -> ParseResult:
        Parses a single input (file path or raw source).

    format_result(label: str, result: ParseResult, as_json: bool = False) -> str:
        Renders one result line. The JSON form carries the tree in its text form.

    main(argv: list[str] | None = None) -> int:
        Parses CLI arguments, validates every input and prints the results.
"""

import argparse
import json
import logging
import sys

from calc.calc_parser import ParserOptions, parse, parse_file
from calc.calc_result import Accept, ParseResult

logger = logging.getLogger(__name__)

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_UNREADABLE = 2


def run_calc(
    source: str,
    is_string: bool = False,
    options: ParserOptions | None = None,
) -> ParseResult:
    """
    Run the CALC pipeline on one input: read, scan and parse.

    Args:
        source (str): A path to a CALC file, or raw source when `is_string` is True.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        options (ParserOptions | None): Parser configuration.

    Returns:
        ParseResult: The `Accept` or `Error` for the input.

    Raises:
        OSError: If `source` names a file that cannot be read.
    """
    if is_string:
        return parse(source, options)
    return parse_file(source, options)


def format_result(label: str, result: ParseResult, as_json: bool = False) -> str:
    if as_json:
        payload: dict[str, object] = {"file": label, "accepted": result.ok}
        if isinstance(result, Accept):
            payload["tree"] = str(result.tree)
        else:
            payload["error"] = result.message
        return json.dumps(payload)
    return f"{label}: {result}"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calc", description="Validate CALC programs and print their parse trees."
    )
    parser.add_argument("files", nargs="*", help="CALC source files to validate")
    parser.add_argument(
        "-s", "--string", metavar="SOURCE", help="Validate SOURCE instead of a file"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=ParserOptions.from_env().strict_end,
        help="Reject tokens after the '$$' end marker (default from CALC_STRICT_END)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print one JSON object per input"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the CALC CLI.

    Validates every input in order and prints one result per input. Files that
    cannot be read are reported on stderr and do not stop the remaining inputs.
    """
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.string is None and not args.files:
        arg_parser.error("no input: pass one or more files or -s SOURCE")

    options = ParserOptions(strict_end=args.strict)
    inputs: list[tuple[str, str, bool]] = []
    if args.string is not None:
        inputs.append(("<string>", args.string, True))
    inputs.extend((path, path, False) for path in args.files)

    status = EXIT_ACCEPTED
    for label, source, is_string in inputs:
        try:
            result = run_calc(source, is_string=is_string, options=options)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read {label}: {e!r}")
            print(f"{label}: cannot read file: {e}", file=sys.stderr)
            status = EXIT_UNREADABLE
            continue
        print(format_result(label, result, as_json=args.json))
        if not result.ok and status == EXIT_ACCEPTED:
            status = EXIT_REJECTED

    return status


if __name__ == "__main__":
    sys.exit(main())
