from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from promptline.config_loader import build_config
from promptline.formatter import parse_style
from promptline.modules import ALL_MODULES
from promptline.prompt import compute_module, compute_modules, get_module, get_prompt, render_prompt_segments
from promptline.segment import segments_to_plain
from promptline.terminal import strip_ansi
from tests.helpers.module_renderer import DEFAULT_COMMANDS, StubContext, styled_runs


def _context(
    tmp_path: Path,
    raw_config: Optional[Dict[str, Any]] = None,
    env: Optional[Dict[str, str]] = None,
    shell: Optional[str] = None,
) -> StubContext:
    return StubContext(
        build_config(raw_config or {}),
        path=tmp_path,
        env={"HOME": str(tmp_path / "home"), **(env or {})},
        shell=shell,
        commands=DEFAULT_COMMANDS,
    )


def test_default_prompt_in_empty_directory(tmp_path: Path) -> None:
    assert asyncio.run(get_prompt(_context(tmp_path), color=False)) == "❯ "


def test_default_prompt_orders_modules(tmp_path: Path) -> None:
    (tmp_path / "main.pony").write_text("", encoding="utf-8")
    (tmp_path / "app.pl").write_text("", encoding="utf-8")
    context = _context(tmp_path, env={"AWS_PROFILE": "astronauts"})
    text = asyncio.run(get_prompt(context, color=False))
    assert text == "via 🐪 v5.26.1 via 🐎 v0.38.1 on ☁️  astronauts ❯ "


def test_explicit_module_is_not_repeated_by_all(tmp_path: Path) -> None:
    (tmp_path / "app.pl").write_text("", encoding="utf-8")
    context = _context(tmp_path, {"format": "$aws| $all"}, env={"AWS_REGION": "eu-west-1"})
    text = asyncio.run(get_prompt(context, color=False))
    assert text == "on ☁️  (eu-west-1) | via 🐪 v5.26.1 "


def test_module_segments_keep_their_styles(tmp_path: Path) -> None:
    context = _context(tmp_path, {"format": "[<$aws>](red)"}, env={"AWS_PROFILE": "dev"})
    segments = asyncio.run(render_prompt_segments(context))
    assert styled_runs(segments) == [
        ("<on ", parse_style("red")),
        ("☁️  dev ", parse_style("bold yellow")),
        (">", parse_style("red")),
    ]


def test_group_around_absent_module_is_elided(tmp_path: Path) -> None:
    context = _context(tmp_path, {"format": "[<$aws>](red)x"})
    assert segments_to_plain(asyncio.run(render_prompt_segments(context))) == "x"


def test_broken_prompt_format_uses_default(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    context = _context(tmp_path, {"format": "[$all"})
    with caplog.at_level(logging.WARNING, logger="promptline"):
        text = asyncio.run(get_prompt(context, color=False))
    assert text == "❯ "
    assert "Invalid prompt format" in caplog.text


def test_prompt_style_error_uses_default(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    context = _context(tmp_path, {"format": "[>](sparkly) "})
    with caplog.at_level(logging.WARNING, logger="promptline"):
        text = asyncio.run(get_prompt(context, color=False))
    assert text == "❯ "
    assert "Error in prompt format" in caplog.text


def test_add_newline(tmp_path: Path) -> None:
    context = _context(tmp_path, {"add_newline": True})
    assert asyncio.run(get_prompt(context, color=False)) == "\n❯ "


def test_color_output_is_wrapped_for_bash(tmp_path: Path) -> None:
    context = _context(tmp_path, shell="bash")
    text = asyncio.run(get_prompt(context))
    assert "\\[\x1b[" in text
    assert strip_ansi(text.replace("\\[", "").replace("\\]", "")) == "❯ "


def test_color_output_for_unknown_shell_is_raw_ansi(tmp_path: Path) -> None:
    text = asyncio.run(get_prompt(_context(tmp_path, shell="fish")))
    assert text.startswith("\x1b[")
    assert "\\[" not in text


def test_failing_module_does_not_break_prompt(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    def broken(context):
        raise RuntimeError("kaboom")

    monkeypatch.setitem(ALL_MODULES, "pony", broken)
    context = _context(tmp_path, env={"AWS_PROFILE": "astronauts"})
    with caplog.at_level(logging.WARNING, logger="promptline"):
        text = asyncio.run(get_prompt(context, color=False))
    assert text == "on ☁️  astronauts ❯ "
    assert "Module `pony` failed unexpectedly" in caplog.text


def test_compute_module_unknown_name(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="promptline"):
        assert asyncio.run(compute_module(_context(tmp_path), "rust")) is None
    assert "Unknown module `rust`" in caplog.text


def test_compute_module_records_duration(tmp_path: Path) -> None:
    (tmp_path / "main.pony").write_text("", encoding="utf-8")
    module = asyncio.run(compute_module(_context(tmp_path), "pony"))
    assert module is not None
    assert module.duration >= 0.0
    assert module.to_plain() == "via 🐎 v0.38.1 "


def test_compute_modules_preserves_order(tmp_path: Path) -> None:
    (tmp_path / "main.pony").write_text("", encoding="utf-8")
    (tmp_path / "app.pl").write_text("", encoding="utf-8")
    modules = asyncio.run(compute_modules(_context(tmp_path), ["pony", "aws", "perl"]))
    assert [module.name if module else None for module in modules] == ["pony", None, "perl"]


def test_get_module_absent_is_empty_string(tmp_path: Path) -> None:
    assert asyncio.run(get_module(_context(tmp_path), "perl", color=False)) == ""


def test_get_module_plain(tmp_path: Path) -> None:
    context = _context(tmp_path, env={"AWS_PROFILE": "astronauts"})
    assert asyncio.run(get_module(context, "aws", color=False)) == "on ☁️  astronauts "


def test_overly_nested_prompt_format_uses_default(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    context = _context(tmp_path, {"format": "[" * 5000})
    with caplog.at_level(logging.WARNING, logger="promptline"):
        text = asyncio.run(get_prompt(context, color=False))
    assert text == "❯ "
    assert "nested deeper" in caplog.text
