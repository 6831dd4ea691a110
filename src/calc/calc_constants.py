"""
Lexical constants for the CALC language.

Exports:
    ALLOWED_CHARACTERS: Every character that may appear in a source file.
    KEYWORDS: Reserved words that can never be used as identifiers.
    COMPARISON_OPERATORS: Operators accepted by the `compare` rule.
    STATEMENT_KEYWORDS: Keywords that open a statement.
    token_hashmap: Lexeme -> canonical token type for fixed lexemes.
"""

import string

ALLOWED_CHARACTERS: frozenset[str] = frozenset(
    string.ascii_letters + string.digits + string.whitespace + "$=;()+-<>\r"
)

KEYWORDS: frozenset[str] = frozenset({"if", "endif", "read", "write"})

STATEMENT_KEYWORDS: frozenset[str] = frozenset({"if", "read", "write"})

COMPARISON_OPERATORS: frozenset[str] = frozenset({"<", "<=", ">", ">=", "==", "!="})

END_MARKER = "$$"

# Fixed lexemes. The lexer prefers the longest key that matches.
token_hashmap: dict[str, str] = {
    "$$": "END",
    "$": "DOLLAR",
    "=": "ASSIGN",
    ";": "SEMI",
    "(": "LPAREN",
    ")": "RPAREN",
    "+": "PLUS",
    "-": "SUB",
    "<": "LT",
    "<=": "LE",
    ">": "GT",
    ">=": "GE",
    "==": "EQ",
    "!=": "NE",
    "if": "IF",
    "endif": "ENDIF",
    "read": "READ",
    "write": "WRITE",
}

__all__ = [
    "ALLOWED_CHARACTERS",
    "COMPARISON_OPERATORS",
    "END_MARKER",
    "KEYWORDS",
    "STATEMENT_KEYWORDS",
    "token_hashmap",
]
