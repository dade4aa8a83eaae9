"""
Jack Parse Tree Output

The compilation engine reports every production it enters and every token
it consumes to a tree writer. The XML writer renders those events as the
parse tree; the null writer ignores them.
"""

from abc import ABC, abstractmethod
from typing import TextIO
from xml.sax.saxutils import escape

from .tokens import Token, TokenType, XML_TAGS
from .lexer import Lexer


def terminal_xml(token: Token) -> str:
    """Render one token as a single XML element."""
    tag = XML_TAGS[token.type]
    if token.type == TokenType.STRING_CONST:
        text = token.value
    else:
        text = token.lexeme
    return f"<{tag}> {escape(text)} </{tag}>"


class TreeWriter(ABC):
    """Listener for the structure of a compilation unit."""

    @abstractmethod
    def open(self, tag: str) -> None:
        """Enter a non-terminal."""
        pass

    @abstractmethod
    def close(self, tag: str) -> None:
        """Leave a non-terminal."""
        pass

    @abstractmethod
    def terminal(self, token: Token) -> None:
        """Record a consumed token."""
        pass


class NullTreeWriter(TreeWriter):

    def open(self, tag: str) -> None:
        pass

    def close(self, tag: str) -> None:
        pass

    def terminal(self, token: Token) -> None:
        pass


class XMLTreeWriter(TreeWriter):
    """Writes the parse tree as indented XML."""

    INDENT = '  '

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.depth = 0

    def open(self, tag: str) -> None:
        self._line(f"<{tag}>")
        self.depth += 1

    def close(self, tag: str) -> None:
        self.depth -= 1
        self._line(f"</{tag}>")

    def terminal(self, token: Token) -> None:
        self._line(terminal_xml(token))

    def _line(self, text: str) -> None:
        self.stream.write(self.INDENT * self.depth + text + '\n')


def write_tokens_xml(lexer: Lexer, stream: TextIO) -> int:
    """
    Write the token stream of a source file as XML.

    Returns:
        Number of tokens written
    """
    count = 0
    stream.write('<tokens>\n')
    for token in lexer:
        stream.write(terminal_xml(token) + '\n')
        count += 1
    stream.write('</tokens>\n')
    return count
