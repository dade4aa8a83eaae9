"""
Jack Compiler Errors

Defines exception classes for compilation errors. Every error is fatal for
the compilation unit it was raised in.
"""

from typing import Optional


class JackError(Exception):
    """Base exception for all jackc errors."""

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, filename: Optional[str] = None,
                 source_line: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location information."""
        parts = []

        if self.filename:
            parts.append(self.filename)

        if self.line is not None:
            if parts:
                parts.append(str(self.line))
            else:
                parts.append(f"line {self.line}")

            if self.column is not None:
                parts.append(str(self.column))

        if parts:
            return f"{':'.join(parts)}: {self.message}"
        return self.message

    def with_filename(self, filename: str) -> 'JackError':
        """Attach the name of the file being compiled."""
        self.filename = filename
        self.args = (self._format_message(),)
        return self

    def diagnostic(self) -> str:
        """The offending line, as written to the error stream."""
        where = self.filename or '<source>'
        if self.line is None:
            return where
        return f"{where}:{self.line}: {self.source_line or ''}".rstrip()


class LexError(JackError):
    """Raised when the source cannot be split into tokens."""
    pass


class SyntaxError(JackError):
    """Raised when a token does not fit the production being recognized."""
    pass


class SemanticError(JackError):
    """Raised for undeclared or redeclared identifiers."""
    pass
