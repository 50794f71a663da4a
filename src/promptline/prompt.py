"""Prompt assembly: run modules concurrently and render the top-level format."""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Dict, Iterable, List, Optional, Sequence

from .context import Context
from .datatypes import DEFAULT_PROMPT_FORMAT
from .formatter import FormatterError, StringFormatter
from .module import Module
from .modules import ALL_MODULES
from .segment import Segment, segments_to_ansi
from .terminal import wrap_colorseq_for_shell

logger = logging.getLogger(__name__)

ALL_VARIABLE = "all"


async def compute_module(context: Context, name: str) -> Optional[Module]:
    """
    Run one module handler, isolating its failures from the rest of the prompt.

    Synchronous handlers run in a worker thread so a slow subprocess in one module does not block
    the others. Any unexpected exception is logged and the module is treated as absent.

    Returns:
        Optional[Module]: The rendered module with ``duration`` set, or `None` when the module is
        unknown, disabled, not applicable or failed.
    """
    handler = ALL_MODULES.get(name)
    if handler is None:
        logger.warning("Unknown module `%s`", name)
        return None
    if context.is_module_disabled(name):
        return None

    start = time.perf_counter()
    try:
        if inspect.iscoroutinefunction(handler):
            result = await handler(context)
        else:
            result = await asyncio.to_thread(handler, context)
    except Exception:
        logger.warning("Module `%s` failed unexpectedly", name, exc_info=True)
        return None
    if result is not None:
        result.duration = time.perf_counter() - start
    return result


async def compute_modules(context: Context, names: Iterable[str]) -> List[Optional[Module]]:
    """Run every named module concurrently; results follow the order of ``names``."""

    return list(await asyncio.gather(*(compute_module(context, name) for name in names)))


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def _module_names(variables: Sequence[str]) -> tuple[List[str], List[str]]:
    """Split format variables into explicitly named modules and the modules ``$all`` expands to."""

    explicit = [name for name in variables if name in ALL_MODULES]
    implicit: List[str] = []
    if ALL_VARIABLE in variables:
        implicit = [name for name in ALL_MODULES if name not in explicit]
    return explicit, implicit


async def _render_format(context: Context, formatter: StringFormatter) -> List[Segment]:
    variables = formatter.get_variables()
    explicit, implicit = _module_names(variables)
    names = _unique([*explicit, *implicit])
    modules = await compute_modules(context, names)
    rendered: Dict[str, Module] = {
        module.name: module for module in modules if module is not None and not module.is_empty()
    }

    def resolve(variable: str) -> Optional[List[Segment]]:
        if variable == ALL_VARIABLE:
            segments = [
                segment
                for name in implicit
                if name in rendered
                for segment in rendered[name].get_segments()
            ]
            return segments or None
        module = rendered.get(variable)
        if module is None:
            if variable not in ALL_MODULES:
                logger.debug("Prompt format references unknown variable `%s`", variable)
            return None
        return module.get_segments()

    return formatter.map(resolve).render()


async def render_prompt_segments(context: Context) -> List[Segment]:
    """
    Evaluate the top-level prompt format.

    Variables in the prompt format name modules (``$aws``) or ``$all`` for every module not named
    explicitly. A broken prompt format falls back to the default one with a warning.

    Returns:
        List[Segment]: The full prompt as ordered segments.
    """
    formatter = StringFormatter(context.config.prompt.format, default_format=DEFAULT_PROMPT_FORMAT)
    if formatter.fallback_error is not None:
        logger.warning("Invalid prompt format, using the default:\n%s", formatter.fallback_error)
    try:
        return await _render_format(context, formatter)
    except FormatterError as exc:
        if formatter.format_string == DEFAULT_PROMPT_FORMAT:
            raise
        logger.warning("Error in prompt format, using the default:\n%s", exc)
    return await _render_format(context, StringFormatter(DEFAULT_PROMPT_FORMAT))


async def get_prompt(context: Context, *, color: bool = True) -> str:
    """Render the prompt as a single string ready to be printed by the shell."""

    segments = await render_prompt_segments(context)
    text = wrap_colorseq_for_shell(segments_to_ansi(segments, color=color), context.shell)
    if context.config.prompt.add_newline:
        text = "\n" + text
    return text


async def get_module(context: Context, name: str, *, color: bool = True) -> str:
    """Render a single module; an absent module yields an empty string."""

    module = await compute_module(context, name)
    if module is None:
        return ""
    return module.ansi_string(color=color, shell=context.shell)
