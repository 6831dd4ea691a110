"""
CALC Language Parser

Validates CALC source text and builds its parse tree.

This module implements the CALC recursive-descent parser. Every grammar rule has one
`parse_*` method that either returns the `ParseNode` for that rule or an `Error`. The
first error ends the parse: every enclosing method hands it back unchanged, and no
partial tree is ever returned.

Grammar
-------
    program    := stmt_list '$$'
    stmt_list  := stmt stmt_list | ε
    stmt       := 'if' '(' expr ')' stmt_list 'endif' ';'
                | 'write' expr ';'
                | 'read' id ';'
                | id '=' expr ';'
    expr       := id etail | num etail
    etail      := '+' expr | '-' expr | compare expr | ε
    id         := letter run that is not a keyword
    num        := numsign digit run
    numsign    := '+' | '-' | ε
    compare    := '<' | '<=' | '>' | '>=' | '==' | '!='

Parser Behavior
---------------
- One token of lookahead decides every rule; nothing is ever un-consumed.
- `etail` is a flat right-recursive chain; there is no operator precedence.
- `stmt_list` and `expr` chains are read in a loop and then folded, so long
  programs and long expressions do not grow the call stack.
- A sign is consumed by `numsign` even if no digit follows, in which case `num` fails.
- Tokens after `$$` are not inspected unless `ParserOptions.strict_end` is set.

Entry Points
------------
- `parse()`: Scan and parse source text into an `Accept` or `Error`.
- `parse_file()`: Read a UTF-8 file and `parse()` its contents.
- `Parser.parse_program()`: Parse an already scanned token list.

Example
-------
>>> print(parse("x=5;$$"))
Accept:program(stmt_list(stmt(id('x'), '=', expr(num(numsign(), '5'), etail()), ';'), stmt_list()), '$$')
>>> print(parse("x=+;$$"))
Syntax error at line 1: Expected digit but found ';' x=+;$$
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from calc.calc_constants import (
    COMPARISON_OPERATORS,
    END_MARKER,
    KEYWORDS,
    STATEMENT_KEYWORDS,
)
from calc.calc_cursor import TokenCursor
from calc.calc_lexer import DIGITS, LETTERS, Token, tokenize
from calc.calc_result import Accept, Error, ParseResult
from calc.calc_tree import ParseNode

logger = logging.getLogger(__name__)

STATEMENT_HEAD = "id, if, read or write"

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ParserOptions:
    """
    Parser configuration options.

    Attributes:
        strict_end: Reject tokens that follow the `$$` end marker. Off by default,
                    which leaves anything after `$$` unread.
    """

    strict_end: bool = False

    @classmethod
    def from_env(cls) -> ParserOptions:
        """Builds options from the `CALC_STRICT_END` environment variable."""
        return cls(strict_end=os.getenv("CALC_STRICT_END", "").strip().lower() in TRUTHY)


def is_identifier(lexeme: str) -> bool:
    return bool(lexeme) and set(lexeme) <= LETTERS and lexeme not in KEYWORDS


def is_number(lexeme: str) -> bool:
    return bool(lexeme) and set(lexeme) <= DIGITS


class Parser:
    """
    CALC Parser Class

    Consumes tokens through a `TokenCursor` and builds the `program` parse tree.

    Attributes
    ----------
    cursor : TokenCursor
        Position in the token sequence plus the line context for diagnostics.
    options : ParserOptions
        Parser configuration.

    Methods
    -------
    parse_program() -> ParseNode | Error
    parse_stmt_list() -> ParseNode | Error
    parse_stmt() -> ParseNode | Error
    parse_expr() -> ParseNode | Error
    parse_etail() -> ParseNode | Error
    parse_operand() -> ParseNode | Error
    parse_operator() -> str | ParseNode | Error | None
    parse_id() -> ParseNode | Error
    parse_num() -> ParseNode | Error
    parse_numsign() -> ParseNode
    parse_compare() -> ParseNode | Error
    """

    def __init__(
        self, tokens: Iterable[Token], options: ParserOptions | None = None
    ) -> None:
        self.cursor = TokenCursor(tokens)
        self.options = options or ParserOptions()

    def expect(self, lexeme: str) -> Error | None:
        """Consumes `lexeme` or returns the error naming it."""
        if self.cursor.match(lexeme):
            return None
        return self.cursor.syntax_error(f"'{lexeme}'")

    def starts_statement(self) -> bool:
        lookahead = self.cursor.peek()
        return lookahead in STATEMENT_KEYWORDS or is_identifier(lookahead)

    def parse_program(self) -> ParseNode | Error:
        """program := stmt_list '$$'"""
        stmts = self.parse_stmt_list()
        if isinstance(stmts, Error):
            return stmts
        error = self.expect(END_MARKER)
        if error:
            return error
        if self.options.strict_end and not self.cursor.at_end():
            return self.cursor.syntax_error("end of input")
        return ParseNode("program", [stmts, END_MARKER])

    def parse_stmt_list(self) -> ParseNode | Error:
        """stmt_list := stmt stmt_list | ε"""
        # Iterated, then folded into the right-nested stmt_list chain.
        stmts: list[ParseNode] = []
        while self.starts_statement():
            stmt = self.parse_stmt()
            if isinstance(stmt, Error):
                return stmt
            stmts.append(stmt)

        node = ParseNode("stmt_list")
        for stmt in reversed(stmts):
            node = ParseNode("stmt_list", [stmt, node])
        return node

    def parse_stmt(self) -> ParseNode | Error:
        """Parse one `if`, `write`, `read` or assignment statement."""
        if self.cursor.match("if"):
            # `if` stays consumed; without its '(' the statement head is reported.
            if not self.cursor.match("("):
                return self.cursor.syntax_error(STATEMENT_HEAD)
            return self.parse_if_rest()

        if self.cursor.match("write"):
            expr = self.parse_expr()
            if isinstance(expr, Error):
                return expr
            error = self.expect(";")
            if error:
                return error
            return ParseNode("stmt", ["write", expr, ";"])

        if self.cursor.match("read"):
            ident = self.parse_id()
            if isinstance(ident, Error):
                return ident
            error = self.expect(";")
            if error:
                return error
            return ParseNode("stmt", ["read", ident, ";"])

        if is_identifier(self.cursor.peek()):
            ident = self.parse_id()
            if isinstance(ident, Error):
                return ident
            error = self.expect("=")
            if error:
                return error
            expr = self.parse_expr()
            if isinstance(expr, Error):
                return expr
            error = self.expect(";")
            if error:
                return error
            return ParseNode("stmt", [ident, "=", expr, ";"])

        return self.cursor.syntax_error(STATEMENT_HEAD)

    def parse_if_rest(self) -> ParseNode | Error:
        """Parse `expr ')' stmt_list 'endif' ';'` once `if (` has been consumed."""
        cond = self.parse_expr()
        if isinstance(cond, Error):
            return cond
        error = self.expect(")")
        if error:
            return error
        body = self.parse_stmt_list()
        if isinstance(body, Error):
            return body
        error = self.expect("endif") or self.expect(";")
        if error:
            return error
        return ParseNode("stmt", ["if", "(", cond, ")", body, "endif", ";"])

    def parse_expr(self) -> ParseNode | Error:
        """expr := id etail | num etail"""
        # Iterated, then folded into the right-nested expr/etail chain.
        heads: list[ParseNode] = []
        operators: list[str | ParseNode] = []
        while True:
            head = self.parse_operand()
            if isinstance(head, Error):
                return head
            heads.append(head)
            operator = self.parse_operator()
            if isinstance(operator, Error):
                return operator
            if operator is None:
                break
            operators.append(operator)

        node = ParseNode("expr", [heads.pop(), ParseNode("etail")])
        while heads:
            tail = ParseNode("etail", [operators.pop(), node])
            node = ParseNode("expr", [heads.pop(), tail])
        return node

    def parse_etail(self) -> ParseNode | Error:
        """etail := '+' expr | '-' expr | compare expr | ε"""
        operator = self.parse_operator()
        if isinstance(operator, Error):
            return operator
        if operator is None:
            return ParseNode("etail")
        expr = self.parse_expr()
        if isinstance(expr, Error):
            return expr
        return ParseNode("etail", [operator, expr])

    def parse_operand(self) -> ParseNode | Error:
        """The `id` or `num` that opens an `expr`."""
        lookahead = self.cursor.peek()
        if is_identifier(lookahead):
            return self.parse_id()
        if is_number(lookahead) or lookahead in ("+", "-"):
            return self.parse_num()
        return self.cursor.syntax_error("id or number")

    def parse_operator(self) -> str | ParseNode | Error | None:
        """Consumes the operator that opens a non-empty `etail`; None when the tail is ε."""
        lookahead = self.cursor.peek()
        if lookahead in ("+", "-"):
            self.cursor.consume()
            return lookahead
        if lookahead in COMPARISON_OPERATORS:
            return self.parse_compare()
        return None

    def parse_id(self) -> ParseNode | Error:
        lookahead = self.cursor.peek()
        if not is_identifier(lookahead):
            return self.cursor.syntax_error("id")
        self.cursor.consume()
        return ParseNode("id", [lookahead])

    def parse_num(self) -> ParseNode | Error:
        """num := numsign digit run"""
        sign = self.parse_numsign()
        digits = self.cursor.peek()
        if not is_number(digits):
            return self.cursor.syntax_error("digit")
        self.cursor.consume()
        return ParseNode("num", [sign, digits])

    def parse_numsign(self) -> ParseNode:
        lookahead = self.cursor.peek()
        if lookahead in ("+", "-"):
            self.cursor.consume()
            return ParseNode("numsign", [lookahead])
        return ParseNode("numsign")

    def parse_compare(self) -> ParseNode | Error:
        lookahead = self.cursor.peek()
        if lookahead not in COMPARISON_OPERATORS:
            return self.cursor.syntax_error("comparison operator")
        self.cursor.consume()
        return ParseNode("compare", [lookahead])


def parse(source: str, options: ParserOptions | None = None) -> ParseResult:
    """
    Scan and parse a CALC program.

    Args:
        source (str): The complete program text.
        options (ParserOptions | None): Parser configuration; defaults to lenient.

    Returns:
        ParseResult: `Accept(tree)` for a valid program, otherwise the scanning or
        syntax `Error` for the first problem found.
    """
    tokens = tokenize(source)
    if isinstance(tokens, Error):
        return tokens

    tree = Parser(tokens, options).parse_program()
    if isinstance(tree, Error):
        logger.debug(f"Rejected: {tree.message}")
        return tree
    logger.debug(f"Accepted program of {len(tree.nodes('stmt'))} statements")
    return Accept(tree)


def parse_file(path: str | Path, options: ParserOptions | None = None) -> ParseResult:
    """
    Read a UTF-8 source file and parse it.

    Raises:
        OSError: If the file cannot be read.
    """
    logger.debug(f"Parsing {path}")
    return parse(Path(path).read_text(encoding="utf-8"), options)


__all__ = [
    "Parser",
    "ParserOptions",
    "is_identifier",
    "is_number",
    "parse",
    "parse_file",
]
