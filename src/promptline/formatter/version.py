"""Version-string formatting built on the format engine (``version_format = "v${raw}"``)."""
from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from ..segment import segments_to_plain
from .errors import FormatterError
from .string_formatter import StringFormatter

logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[-+].*)?$")


def _version_parts(version: str) -> Dict[str, str]:
    parts: Dict[str, str] = {"raw": version}
    match = _SEMVER_RE.match(version.strip())
    if match:
        parts["major"], parts["minor"], parts["patch"] = match.groups()
    return parts


def format_version(version: str, version_format: str) -> str:
    """
    Render ``version`` through ``version_format``.

    Available variables are ``raw`` (the version as given) and, when the version looks like
    ``MAJOR.MINOR.PATCH``, ``major``, ``minor`` and ``patch``.

    Raises:
        FormatterError: If the format is malformed or references a style that cannot be parsed.
    """
    parts = _version_parts(version)
    segments = StringFormatter(version_format).map(parts.get).render()
    return segments_to_plain(segments)


def format_module_version(module_name: str, version: str, version_format: str) -> Optional[str]:
    """Format a module's version, logging and returning the raw version when the format is broken."""

    try:
        return format_version(version, version_format)
    except FormatterError as exc:
        logger.warning("Error formatting `%s` version:\n%s", module_name, exc)
        return version
