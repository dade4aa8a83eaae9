"""
Jack Lexer

Splits Jack source code into tokens on demand.

Every lexical rule is a matcher tried against the remaining input; the
longest match wins and, on a tie, the rule listed first. That is what makes
``class`` a keyword but ``classy`` an identifier, and ``//`` a comment rather
than two ``/`` symbols.
"""

import re
from collections import deque
from typing import Callable, Deque, Iterator, List, Optional, Tuple

from .tokens import Token, TokenType, KEYWORDS, SYMBOLS, MAX_INT
from .errors import LexError


_KEYWORD = re.compile('|'.join(sorted(KEYWORDS, key=len, reverse=True)))
_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
_STRING = re.compile(r'"[^"\r\n]*"')
_INTEGER = re.compile(r'[0-9]+\b')
_LINE_COMMENT = re.compile(r'//[^\r\n]*')
_BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
_WHITESPACE = re.compile(r'[ \t\f\v]+')
_NEWLINE = re.compile(r'\r\n|\r|\n')

# Character codes a string constant may hold
STRING_CHARS = (32, 126)

# A matcher returns the length of its match at a position, or 0
Matcher = Callable[[str, int], int]


def _regex(pattern: 're.Pattern') -> Matcher:
    def match(source: str, pos: int) -> int:
        m = pattern.match(source, pos)
        return m.end() - pos if m else 0
    return match


def _symbol(source: str, pos: int) -> int:
    return 1 if source[pos] in SYMBOLS else 0


class Lexer:
    """Lazy, restartable tokenizer for Jack source code."""

    def __init__(self, source: str):
        """
        Initialize the lexer.

        Args:
            source: Jack source code to tokenize
        """
        self.source = source
        self.lines = _NEWLINE.split(source)

        # (matcher, token type or None for discarded input)
        self.rules: List[Tuple[Matcher, Optional[TokenType]]] = [
            (_regex(_KEYWORD), TokenType.KEYWORD),
            (_symbol, TokenType.SYMBOL),
            (_regex(_IDENTIFIER), TokenType.IDENTIFIER),
            (self._string, TokenType.STRING_CONST),
            (_regex(_INTEGER), TokenType.INT_CONST),
            (_regex(_LINE_COMMENT), None),
            (self._block_comment, None),
            (_regex(_WHITESPACE), None),
            (_regex(_NEWLINE), None),
        ]
        self.reset()

    def reset(self) -> None:
        """Rewind to the start of the source."""
        self.current = 0
        self.line = 1
        self.line_start = 0
        self.pending: Deque[Token] = deque()

    # =========================================================================
    # Public interface
    # =========================================================================

    def has_more(self) -> bool:
        """Check if any token other than end-of-input remains."""
        return self.peek().type != TokenType.EOS

    def advance(self) -> Token:
        """Consume and return the next token."""
        if self.pending:
            return self.pending.popleft()
        return self.scan_token()

    def peek(self, offset: int = 0) -> Token:
        """Return an upcoming token without consuming it."""
        while len(self.pending) <= offset:
            self.pending.append(self.scan_token())
        return self.pending[offset]

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of tokens, ending with the EOS token
        """
        tokens = []
        while True:
            token = self.advance()
            tokens.append(token)
            if token.type == TokenType.EOS:
                return tokens

    def __iter__(self) -> Iterator[Token]:
        while self.has_more():
            yield self.advance()

    def source_line(self, line: int) -> str:
        """Return the raw text of a 1-based line number."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1]
        return ''

    # =========================================================================
    # Scanning
    # =========================================================================

    def scan_token(self) -> Token:
        """Scan raw input up to and including the next token."""
        while self.current < len(self.source):
            token_type, length = self.longest_match()
            start = self.current
            lexeme = self.source[start:start + length]

            if token_type is None:
                self.skip(lexeme)
                continue

            token = self.make_token(token_type, lexeme)
            self.current += length
            return token

        return Token(TokenType.EOS, '', None, self.line, self.column(),
                     self.source_line(self.line))

    def longest_match(self) -> Tuple[Optional[TokenType], int]:
        """Try every rule at the current position and pick the winner."""
        best_type: Optional[TokenType] = None
        best_length = 0

        for matcher, token_type in self.rules:
            length = matcher(self.source, self.current)
            if length > best_length:
                best_type, best_length = token_type, length

        if best_length == 0:
            c = self.source[self.current]
            raise self.error(f"Unexpected character: {c!r}")
        return best_type, best_length

    def make_token(self, token_type: TokenType, lexeme: str) -> Token:
        value = lexeme
        if token_type == TokenType.INT_CONST:
            value = int(lexeme)
            if value > MAX_INT:
                raise self.error(
                    f"Integer constant {lexeme} out of range (0..{MAX_INT})")
        elif token_type == TokenType.STRING_CONST:
            value = lexeme[1:-1]
            for c in value:
                if not STRING_CHARS[0] <= ord(c) <= STRING_CHARS[1]:
                    raise self.error(
                        f"Character {c!r} not allowed in string constant "
                        f"(printable ASCII only)")

        return Token(token_type, lexeme, value, self.line, self.column(),
                     self.source_line(self.line))

    def skip(self, lexeme: str) -> None:
        """Discard whitespace or a comment, keeping the line count in step."""
        newlines = list(_NEWLINE.finditer(lexeme))
        self.current += len(lexeme)
        if newlines:
            self.line += len(newlines)
            self.line_start = self.current - len(lexeme) + newlines[-1].end()

    def column(self) -> int:
        return self.current - self.line_start + 1

    def error(self, message: str) -> LexError:
        return LexError(message, self.line, self.column(),
                        source_line=self.source_line(self.line))

    # =========================================================================
    # Rules that can fail part-way
    # =========================================================================

    def _string(self, source: str, pos: int) -> int:
        if source[pos] != '"':
            return 0
        m = _STRING.match(source, pos)
        if m is None:
            raise self.error("Unterminated string constant")
        return m.end() - pos

    def _block_comment(self, source: str, pos: int) -> int:
        if not source.startswith('/*', pos):
            return 0
        m = _BLOCK_COMMENT.match(source, pos)
        if m is None:
            raise self.error("Unterminated block comment")
        return m.end() - pos
