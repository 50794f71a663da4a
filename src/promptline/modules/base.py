"""Helpers shared by module implementations."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..formatter import StringFormatter

logger = logging.getLogger(__name__)


def new_formatter(module_name: str, format_string: str, default_format: str) -> StringFormatter:
    """
    Parse a module's format string, falling back to its default format.

    A fallback is reported as a warning naming the module; the default's own `ParseError`
    propagates to the caller.
    """
    formatter = StringFormatter(format_string, default_format=default_format)
    if formatter.fallback_error is not None:
        logger.warning(
            "Invalid format for module `%s`, using the default:\n%s",
            module_name,
            formatter.fallback_error,
        )
    return formatter


def match_name(name: str, value: Optional[str]) -> Callable[[str], Optional[str]]:
    """Build a resolver that answers ``value`` for ``name`` and `None` for everything else."""

    def resolve(variable: str) -> Optional[str]:
        return value if variable == name else None

    return resolve
