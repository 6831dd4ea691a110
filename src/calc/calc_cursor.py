"""
Positional view over a CALC token sequence.

The cursor is an index into an immutable tuple of tokens. Each token carries its own
line number and line text, so the diagnostic context always moves in step with the
token about to be consumed.
"""

from typing import Iterable

from calc.calc_lexer import Token
from calc.calc_result import Error


class TokenCursor:
    """
    Peek/consume/match access to a token sequence, plus error context.

    Attributes:
        tokens (tuple[Token, ...]): The full token sequence.
        position (int): Index of the next unconsumed token.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self.tokens: tuple[Token, ...] = tuple(tokens)
        self.position: int = 0

    def at_end(self) -> bool:
        return self.position >= len(self.tokens)

    def peek(self) -> str:
        """Returns the lexeme of the next unconsumed token, or "" when exhausted."""
        if self.at_end():
            return ""
        return self.tokens[self.position].value

    def peek_token(self) -> Token | None:
        return None if self.at_end() else self.tokens[self.position]

    def consume(self) -> None:
        """Drops the front token. Does nothing once the sequence is exhausted."""
        if not self.at_end():
            self.position += 1

    def match(self, expected: str) -> bool:
        if self.peek() == expected:
            self.consume()
            return True
        return False

    def _line_token(self) -> Token | None:
        # Once exhausted, the last token stays the reference point.
        if not self.tokens:
            return None
        return self.tokens[min(self.position, len(self.tokens) - 1)]

    def current_line_number(self) -> int:
        tok = self._line_token()
        return tok.line if tok is not None else 0

    def current_line_text(self) -> str:
        tok = self._line_token()
        return tok.line_text if tok is not None else ""

    def syntax_error(self, expected: str) -> Error:
        """Builds the syntax Error for the token at the current position."""
        return Error.syntax(
            self.current_line_number(),
            expected,
            self.peek(),
            self.current_line_text(),
        )

    def __repr__(self) -> str:
        return f"TokenCursor(position={self.position}, remaining={len(self.tokens) - self.position})"


__all__ = ["TokenCursor"]
