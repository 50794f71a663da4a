"""Click CLI wiring and entry points for promptline."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, cast

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .config_loader import load_config_or_default
from .context import Context
from .modules import ALL_MODULES
from .prompt import compute_modules, get_module, get_prompt
from .terminal import color_enabled, detect_shell

LOG_ENV_VAR = "PROMPTLINE_LOG"
_LOG_FORMAT = "[%(name)s] %(levelname)s %(message)s"


def configure_logging(level_name: Optional[str] = None) -> None:
    """
    Attach a single stderr handler to the ``promptline`` logger.

    Parameters:
        level_name (Optional[str]): Level name such as ``"debug"``; defaults to ``$PROMPTLINE_LOG`` or ``WARNING``.
    """
    raw = level_name or os.environ.get(LOG_ENV_VAR) or "WARNING"
    level = getattr(logging, raw.strip().upper(), logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    root = logging.getLogger("promptline")
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_promptline_handler", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._promptline_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.propagate = False


def _build_context(params: Dict[str, Any], path: Optional[str], shell: Optional[str]) -> Context:
    config = load_config_or_default(params.get("config_path"))
    return Context(
        config,
        path=Path(path).expanduser() if path else None,
        shell=shell or detect_shell(),
    )


def _describe(handler: Any) -> str:
    doc = inspect.getdoc(handler) or ""
    return doc.splitlines()[0] if doc else ""


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to the TOML config. Defaults to $PROMPTLINE_CONFIG or ~/.config/promptline.toml.",
)
@click.option(
    "--log-level",
    "log_level",
    default=None,
    help="Logging level (debug, info, warning, error). Defaults to $PROMPTLINE_LOG or warning.",
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Render a shell prompt from independent modules."""

    configure_logging(log_level)
    params = cast(Dict[str, Any], ctx.ensure_object(dict))
    params["config_path"] = config_path


@main.command("prompt")
@click.option("--path", "path", default=None, help="Directory the prompt describes (defaults to the cwd).")
@click.option("--shell", "shell", default=None, help="Target shell, used to wrap escape sequences.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colour output.")
@click.pass_context
def prompt_command(ctx: click.Context, path: Optional[str], shell: Optional[str], no_color: bool) -> None:
    """Print the full prompt."""

    params = cast(Dict[str, Any], ctx.ensure_object(dict))
    context = _build_context(params, path, shell)
    text = asyncio.run(get_prompt(context, color=color_enabled(no_color=no_color)))
    click.echo(text, nl=False)


@main.command("module")
@click.argument("name")
@click.option("--path", "path", default=None, help="Directory the module inspects (defaults to the cwd).")
@click.option("--shell", "shell", default=None, help="Target shell, used to wrap escape sequences.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colour output.")
@click.pass_context
def module_command(
    ctx: click.Context, name: str, path: Optional[str], shell: Optional[str], no_color: bool
) -> None:
    """Print a single module."""

    if name not in ALL_MODULES:
        known = ", ".join(ALL_MODULES)
        raise click.ClickException(f"Unknown module '{name}'. Known modules: {known}")
    params = cast(Dict[str, Any], ctx.ensure_object(dict))
    context = _build_context(params, path, shell)
    click.echo(asyncio.run(get_module(context, name, color=color_enabled(no_color=no_color))), nl=False)


@main.command("explain")
@click.option("--path", "path", default=None, help="Directory the prompt describes (defaults to the cwd).")
@click.option("--timings", "show_timings", is_flag=True, help="Include how long each module took.")
@click.pass_context
def explain_command(ctx: click.Context, path: Optional[str], show_timings: bool) -> None:
    """List every module that would appear in the prompt, with its output."""

    params = cast(Dict[str, Any], ctx.ensure_object(dict))
    context = _build_context(params, path, None)
    names: List[str] = list(ALL_MODULES)
    modules = asyncio.run(compute_modules(context, names))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Module")
    table.add_column("Output")
    if show_timings:
        table.add_column("Duration", justify="right")
    table.add_column("Description")
    for name, module in zip(names, modules):
        if module is None or module.is_empty():
            continue
        row: List[Any] = [name, Text(module.to_plain())]
        if show_timings:
            row.append(f"{module.duration * 1000:.1f} ms")
        row.append(_describe(ALL_MODULES[name]))
        table.add_row(*row)
    Console().print(table)


if __name__ == "__main__":  # pragma: no cover
    main()
