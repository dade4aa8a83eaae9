"""
Jack Token Definitions

Defines the token types and the Token class produced by the lexer.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Lexical categories of the Jack language."""

    KEYWORD = auto()
    SYMBOL = auto()
    IDENTIFIER = auto()
    INT_CONST = auto()
    STRING_CONST = auto()

    # End of input; returned repeatedly once the source is exhausted
    EOS = auto()


KEYWORDS = frozenset({
    'class', 'constructor', 'function', 'method',
    'field', 'static', 'var',
    'int', 'char', 'boolean', 'void',
    'true', 'false', 'null', 'this',
    'let', 'do', 'if', 'else', 'while', 'return',
})

SYMBOLS = frozenset('{}()[].,;+-*/&|<>=~')

PRIMITIVE_TYPES = ('int', 'char', 'boolean')
KEYWORD_CONSTANTS = ('true', 'false', 'null', 'this')
BINARY_OPERATORS = ('+', '-', '*', '/', '&', '|', '<', '>', '=')
UNARY_OPERATORS = ('-', '~')

MAX_INT = 32767

# Element names used by the XML views
XML_TAGS = {
    TokenType.KEYWORD: 'keyword',
    TokenType.SYMBOL: 'symbol',
    TokenType.IDENTIFIER: 'identifier',
    TokenType.INT_CONST: 'integerConstant',
    TokenType.STRING_CONST: 'stringConstant',
}


@dataclass
class Token:
    """Represents a single token from the source code."""

    type: TokenType
    lexeme: str
    value: Any
    line: int
    column: int
    source_line: str = ''

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"

    def is_a(self, type: TokenType, *values: Any) -> bool:
        """Check the token type and, if given, that the value is one of values."""
        if self.type != type:
            return False
        return not values or self.value in values

    def is_type_name(self) -> bool:
        """Check if this token can start a declared type."""
        return (self.type == TokenType.IDENTIFIER or
                self.is_a(TokenType.KEYWORD, *PRIMITIVE_TYPES))

    def describe(self) -> str:
        """Human readable form used in error messages."""
        if self.type == TokenType.EOS:
            return "end of input"
        return f"{self.type.name.lower()} {self.lexeme!r}"
