"""Exception types for encoding-tolerant XML loading.

Conversion and parse errors describe a single failed charset attempt and are
absorbed by the resolver. Only file-open failures and total exhaustion of the
candidate chain reach the document as its error state.
"""

from typing import List, Optional, Sequence


class ForgivingXmlError(Exception):
    """Base exception for all library errors."""


class FileOpenError(ForgivingXmlError):
    """Raised when a source file cannot be read or is empty."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ConversionError(ForgivingXmlError):
    """Raised when bytes cannot be converted from a charset to UTF-8."""

    def __init__(self, message: str, charset: str = "") -> None:
        super().__init__(message)
        self.charset = charset


class ParseError(ForgivingXmlError):
    """Raised by an XML engine when the input is not well-formed."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column

    @property
    def location(self) -> str:
        """Human readable position of the error, empty when unknown."""
        if self.line is None:
            return ""
        if self.column is None:
            return f"line {self.line}"
        return f"line {self.line}, column {self.column}"


class ExhaustedFallbackError(ForgivingXmlError):
    """Raised when every charset candidate failed to produce a tree."""

    def __init__(self, message: str, attempts: Optional[Sequence[object]] = None) -> None:
        super().__init__(message)
        self.attempts: List[object] = list(attempts or [])


class InputTooLargeError(ForgivingXmlError):
    """Raised when input exceeds the configured size limit; nothing is parsed."""

    def __init__(self, message: str, size: int, limit: int) -> None:
        super().__init__(message)
        self.size = size
        self.limit = limit
