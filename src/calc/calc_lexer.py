"""
Lexical analyzer for the CALC language.

This module provides core components for converting raw source code into token streams:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    find_invalid_character: Pre-scan that rejects characters outside the allow-list.
    tokenize: Full scan of a source text into a list of tokens, or a scanning Error.

Features:
    - Rejects the whole input on the first disallowed character, before tokenizing
    - Supports longest-match recognition of `$$` and two-character comparisons
    - Recognizes:
        * Keywords (`if`, `endif`, `read`, `write`) and identifiers (letter runs)
        * Numbers (digit runs)
        * Operators and punctuation

Example:
    >>> tokens = tokenize("x=5;$$")
    >>> [tok.value for tok in tokens]
    ['x', '=', '5', ';', '$$']

Exports:
    - CharacterStream
    - Token
    - Lexer
    - find_invalid_character
    - tokenize
"""

import logging
import string
from typing import Any

from calc.calc_constants import ALLOWED_CHARACTERS, token_hashmap
from calc.calc_result import Error

logger = logging.getLogger(__name__)

LETTERS = frozenset(string.ascii_letters)
DIGITS = frozenset(string.digits)
WHITESPACE = frozenset(string.whitespace)

# Longest fixed lexeme that starts with a symbol ("$$", "<=", ...).
MAX_OPERATOR_LENGTH = max(len(k) for k in token_hashmap if not k[0].isalpha())


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the CALC language.

    The token also carries the line record it came from, so the parser never has to
    keep a second, parallel sequence in step with the tokens.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'NUMBER', 'END', 'EOF').
        value (str): The lexeme exactly as written.
        line (int): The 1-based line number where the token appears.
        col (int): The 1-based column number where the token starts.
        line_text (str): The full text of the source line.

    Tokens are immutable; the cursor hands the same instances out to every caller.
    """

    __slots__ = ("type", "value", "line", "col", "line_text")

    def __init__(
        self, type_: str, value: str, line: int = 0, col: int = 0, line_text: str = ""
    ):
        object.__setattr__(self, "type", type_)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "line", line)
        object.__setattr__(self, "col", col)
        object.__setattr__(self, "line_text", line_text)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Token is immutable")

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


def split_lines(source: str) -> list[str]:
    """Splits on line feeds; a carriage return left at the end of a line is dropped."""
    return [line[:-1] if line.endswith("\r") else line for line in source.split("\n")]


class Lexer:
    """Lexical analyzer for the CALC language.

    The Lexer takes a CharacterStream and converts it into a stream of Token objects.
    It does not validate the character set: any character the Lexer cannot place
    becomes an 'ERROR' token. `tokenize` runs `find_invalid_character` first, so
    'ERROR' tokens only appear when a Lexer is driven directly on unchecked text.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        lines (list[str]): The source split into lines, for each token's line text.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.lines = split_lines(stream.source)

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        while not self.stream.end_of_file() and self.peek() in WHITESPACE:
            self.advance()

    def make_token(self, type_: str, value: str, line: int, col: int) -> Token:
        line_text = self.lines[line - 1] if 0 < line <= len(self.lines) else ""
        return Token(type_, value, line, col, line_text)

    def read_run(self, charset: frozenset[str]) -> str:
        """Consumes the maximal run of characters drawn from `charset`."""
        run = ""
        while not self.stream.end_of_file() and self.peek() in charset:
            run += self.advance()
        return run

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        line, col = self.stream.line, self.stream.column
        max_token = None
        match_len = 0
        candidate = ""

        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.stream.peek(i)
            if ch == "" or ch == "\n":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate
                match_len = i + 1

        if max_token:
            for _ in range(match_len):
                self.advance()
            return self.make_token(token_hashmap[max_token], max_token, line, col)

        return None

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or a Token of type 'EOF' once the source is exhausted.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token("EOF", "", self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        # 1. Identifier or keyword
        if ch in LETTERS:
            word = self.read_run(LETTERS)
            return self.make_token(token_hashmap.get(word, "IDENT"), word, line, col)

        # 2. Number
        if ch in DIGITS:
            return self.make_token("NUMBER", self.read_run(DIGITS), line, col)

        # 3. Compound or symbolic operator
        token = self.match_operator()
        if token:
            return token

        # 4. Unknown character (never reached through `tokenize`, which pre-scans)
        return self.make_token("ERROR", self.advance(), line, col)


def find_invalid_character(source: str) -> Error | None:
    """Returns a scanning Error for the first disallowed character, scanning lines in order."""
    for number, line in enumerate(source.split("\n"), start=1):
        for char in line:
            if char not in ALLOWED_CHARACTERS:
                logger.debug(f"Invalid character {char!r} on line {number}")
                return Error.scanning(number, char)
    return None


def tokenize(source: str) -> list[Token] | Error:
    """
    Converts CALC source text into tokens.

    Args:
        source (str): The complete program text.

    Returns:
        list[Token] | Error: Tokens in lexical order (without the EOF token), or the
        scanning Error for the first invalid character. No tokens are produced when
        the source contains an invalid character anywhere.

    Raises:
        TypeError: If `source` is not a string.
    """
    if not isinstance(source, str):
        raise TypeError(f"source must be str, got {type(source).__name__}")

    error = find_invalid_character(source)
    if error is not None:
        return error

    lexer = Lexer(CharacterStream(source))
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        if tok.type == "EOF":
            break
        tokens.append(tok)
    logger.debug(f"Scanned {len(tokens)} tokens from {len(lexer.lines)} lines")
    return tokens


__all__ = [
    "CharacterStream",
    "Lexer",
    "Token",
    "find_invalid_character",
    "split_lines",
    "tokenize",
]
