"""
Result types returned by the CALC pipeline.

Both the scanner and the parser report failure as data rather than by raising,
so that callers can inspect and print every outcome the same way.

Classes:
    Accept: A successful parse carrying the finished parse tree.
    Error: A scanning or syntax failure carrying the formatted message.

Example:
    >>> from calc.calc_parser import parse
    >>> str(parse("x=5;$$")).startswith("Accept:")
    True
"""

from typing import Any, Literal, Union

from calc.calc_tree import ParseNode

ErrorKind = Literal["scanning", "syntax"]


class Accept:
    """Successful parse.

    Attributes:
        tree (ParseNode): The root `program` node.
    """

    ok = True

    def __init__(self, tree: ParseNode) -> None:
        self.tree = tree

    def __str__(self) -> str:
        return f"Accept:{self.tree}"

    def __repr__(self) -> str:
        return f"Accept({self.tree!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Accept) and self.tree == other.tree

    def __hash__(self) -> int:
        return hash(("accept", self.tree))


class Error:
    """Terminal failure of a scan or parse.

    Attributes:
        kind (str): Either "scanning" or "syntax".
        line (int): 1-based line the failure was detected on (0 if unknown).
        message (str): The complete, human-readable diagnostic.
    """

    ok = False

    def __init__(self, kind: ErrorKind, line: int, message: str) -> None:
        self.kind = kind
        self.line = line
        self.message = message

    @classmethod
    def scanning(cls, line: int, char: str) -> "Error":
        return cls("scanning", line, f"Scanning error at line {line}: Invalid character '{char}'")

    @classmethod
    def syntax(cls, line: int, expected: str, found: str, line_text: str) -> "Error":
        return cls(
            "syntax",
            line,
            f"Syntax error at line {line}: Expected {expected} but found '{found}' {line_text}",
        )

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"Error({self.kind}, line={self.line}, message={self.message!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Error)
            and self.kind == other.kind
            and self.line == other.line
            and self.message == other.message
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.line, self.message))


ParseResult = Union[Accept, Error]

__all__ = ["Accept", "Error", "ErrorKind", "ParseResult"]
