"""Perl version module."""
from __future__ import annotations

import logging
from typing import Optional

from ..context import Context
from ..datatypes import PerlConfig
from ..formatter import FormatterError, format_module_version
from ..module import Module
from .base import match_name, new_formatter

logger = logging.getLogger(__name__)

_VERSION_ARGS = ["-e", "printf q#%vd#,$^V;"]


async def module(context: Context) -> Optional[Module]:
    """Show the active perl version when the current directory looks like a Perl project."""

    module = context.new_module("perl")
    config: PerlConfig = module.config
    scan = context.try_begin_scan()
    if scan is None:
        return None
    is_perl_project = (
        scan.set_extensions(config.detect_extensions)
        .set_files(config.detect_files)
        .set_folders(config.detect_folders)
        .is_match()
    )
    if not is_perl_project:
        return None

    async def resolve_version(variable: str) -> Optional[str]:
        if variable != "version":
            return None
        output = await context.async_exec_cmd("perl", _VERSION_ARGS)
        if output is None:
            return None
        return format_module_version(module.name, output.stdout.strip(), config.version_format)

    try:
        formatter = (
            new_formatter(module.name, config.format, PerlConfig.format)
            .map_meta(match_name("symbol", config.symbol))
            .map_style(match_name("style", config.style))
        )
        await formatter.map_async(resolve_version)
        segments = formatter.render()
    except FormatterError as exc:
        logger.warning("Error in module `perl`:\n%s", exc)
        return None

    module.set_segments(segments)
    return module
