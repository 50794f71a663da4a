"""Pony compiler version module."""
from __future__ import annotations

import logging
from typing import Optional

from ..context import Context
from ..datatypes import PonyConfig
from ..formatter import FormatterError, format_module_version
from ..module import Module
from .base import match_name, new_formatter

logger = logging.getLogger(__name__)


def module(context: Context) -> Optional[Module]:
    """Show the ``ponyc`` version when the current directory contains Pony sources."""

    module = context.new_module("pony")
    config: PonyConfig = module.config
    scan = context.try_begin_scan()
    if scan is None:
        return None
    is_pony_project = (
        scan.set_files(config.detect_files)
        .set_extensions(config.detect_extensions)
        .set_folders(config.detect_folders)
        .is_match()
    )
    if not is_pony_project:
        return None

    def resolve_version(variable: str) -> Optional[str]:
        if variable != "version":
            return None
        output = context.exec_cmd("ponyc", ["--version"])
        if output is None:
            return None
        text = output.stdout.strip()
        if not text:
            return None
        # "0.38.1-b1b0a2a [release]" -> "0.38.1"
        pony_version = text.splitlines()[0].split("-", 1)[0].strip()
        return format_module_version(module.name, pony_version, config.version_format)

    try:
        segments = (
            new_formatter(module.name, config.format, PonyConfig.format)
            .map_meta(match_name("symbol", config.symbol))
            .map_style(match_name("style", config.style))
            .map(resolve_version)
            .render()
        )
    except FormatterError as exc:
        logger.warning("Error in module `pony`:\n%s", exc)
        return None

    module.set_segments(segments)
    return module
