"""Exception hierarchy for format-string parsing and evaluation."""
from __future__ import annotations

from typing import Optional


class FormatterError(Exception):
    """Base class for every error raised by the format engine."""


class ParseError(FormatterError):
    """Raised when a format string is malformed."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


class UnterminatedError(ParseError):
    """A group display span or style span was never closed."""


class MissingStyleError(ParseError):
    """A ``[...]`` display span was not immediately followed by ``(...)``."""


class InvalidEscapeError(ParseError):
    """A backslash was followed by a character that cannot be escaped."""


class InvalidVariableError(ParseError):
    """A ``$`` was not followed by a variable name."""


class UnexpectedDelimiterError(ParseError):
    """A bracket or paren appeared outside of a group construct."""


class NestingTooDeepError(ParseError):
    """Groups were nested deeper than the parser accepts."""


class EvalError(FormatterError):
    """Raised when a resolver fails while a parsed format is being rendered."""

    def __init__(self, message: str, variable: Optional[str] = None) -> None:
        super().__init__(message)
        self.variable = variable


class StyleError(FormatterError):
    """Raised when a style string contains a token that is not understood."""

    def __init__(self, token: str, spec: str) -> None:
        super().__init__(f"Invalid style token '{token}' in '{spec}'")
        self.token = token
        self.spec = spec
