"""
Parse errors raised by the rndc configuration and showzone parsers.

Every error derives from ParseError so callers can catch one class.
"""

from typing import Optional


class ParseError(Exception):
    """Base class for all parse failures."""

    prefix = "Parse error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.prefix}: {message}")


class ConfSyntaxError(ParseError):
    """Malformed token stream, with best-effort position detail."""

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        expected: Optional[str] = None,
    ):
        self.position = position
        self.line = line
        self.column = column
        self.expected = expected

        detail = message
        if expected:
            detail += f" (expected {expected})"
        if line is not None:
            detail += f" at line {line}, column {column}"
        super().__init__(detail)


class IncompleteInputError(ConfSyntaxError):
    """Input ended in the middle of a construct."""

    prefix = "Incomplete input"


class InvalidServerAddressError(ParseError):
    prefix = "Invalid server address"


class InvalidIpAddressError(ParseError):
    prefix = "Invalid IP address"


class MissingFieldError(ParseError):
    """A value the caller needs is absent, such as the key to authenticate with."""

    prefix = "Missing required field"


class CircularIncludeError(ParseError):
    prefix = "Circular include detected"


class ConfFileNotFoundError(ParseError):
    prefix = "File not found"


class ConfIOError(ParseError):
    prefix = "IO error"


class InvalidZoneTypeError(ParseError):
    prefix = "Invalid zone type"


class InvalidDnsClassError(ParseError):
    prefix = "Invalid DNS class"
