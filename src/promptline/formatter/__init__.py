"""Format-string engine: parser, evaluator and the `StringFormatter` builder."""
from __future__ import annotations

from .errors import (
    EvalError,
    FormatterError,
    InvalidEscapeError,
    InvalidVariableError,
    MissingStyleError,
    NestingTooDeepError,
    ParseError,
    StyleError,
    UnexpectedDelimiterError,
    UnterminatedError,
)
from .evaluator import evaluate
from .nodes import Group, Literal, Node, StyleKeyword, StyleVariable, Variable
from .parser import parse
from .string_formatter import StringFormatter
from .styles import parse_style
from .version import format_module_version, format_version

__all__ = (
    "EvalError",
    "FormatterError",
    "Group",
    "InvalidEscapeError",
    "InvalidVariableError",
    "Literal",
    "MissingStyleError",
    "NestingTooDeepError",
    "Node",
    "ParseError",
    "StringFormatter",
    "StyleError",
    "StyleKeyword",
    "StyleVariable",
    "UnexpectedDelimiterError",
    "UnterminatedError",
    "Variable",
    "evaluate",
    "format_module_version",
    "format_version",
    "parse",
    "parse_style",
)
