from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from promptline.cli_entry import configure_logging, main

_AWS_VARS = (
    "AWSU_PROFILE",
    "AWS_VAULT",
    "AWS_PROFILE",
    "AWS_DEFAULT_REGION",
    "AWS_REGION",
    "AWS_CONFIG_FILE",
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """An empty project directory with no AWS state leaking in from the host."""

    for name in _AWS_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("COLUMNS", "200")
    path = tmp_path / "project"
    path.mkdir()
    return path


def test_prompt_in_empty_directory(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(main, ["prompt", "--no-color", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert result.output == "❯ "


def test_prompt_with_aws_profile(runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "astronauts")
    result = runner.invoke(main, ["prompt", "--no-color", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert result.output == "on ☁️  astronauts ❯ "


def test_prompt_respects_no_color_env(runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    result = runner.invoke(main, ["prompt", "--path", str(project), "--shell", "bash"])
    assert result.exit_code == 0, result.output
    assert "\x1b[" not in result.output


def test_prompt_colored_for_zsh(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(main, ["prompt", "--path", str(project), "--shell", "zsh"])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("%{\x1b[")


def test_config_option(runner: CliRunner, project: Path, tmp_path: Path) -> None:
    config = tmp_path / "custom.toml"
    config.write_text('format = "[>](red) "\n', encoding="utf-8")
    result = runner.invoke(main, ["--config", str(config), "prompt", "--no-color", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert result.output == "> "


def test_module_command(runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    result = runner.invoke(main, ["module", "aws", "--no-color", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert result.output == "on ☁️  (eu-west-1) "


def test_module_command_absent_module(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(main, ["module", "pony", "--no-color", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert result.output == ""


def test_unknown_module(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(main, ["module", "rust", "--path", str(project)])
    assert result.exit_code == 1
    assert "Unknown module 'rust'" in result.output
    assert "perl, pony, aws" in result.output


def test_explain_lists_active_modules(runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "astronauts")
    result = runner.invoke(main, ["explain", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert "aws" in result.output
    assert "astronauts" in result.output
    assert "Show the active AWS profile and region" in result.output
    assert "perl" not in result.output
    assert "Duration" not in result.output


def test_explain_with_timings(runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "astronauts")
    result = runner.invoke(main, ["explain", "--timings", "--path", str(project)])
    assert result.exit_code == 0, result.output
    assert "Duration" in result.output
    assert " ms" in result.output


def test_configure_logging_installs_single_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    configure_logging("debug")
    configure_logging("info")
    logger = logging.getLogger("promptline")
    owned = [handler for handler in logger.handlers if getattr(handler, "_promptline_handler", False)]
    assert len(owned) == 1
    assert logger.level == logging.INFO


def test_configure_logging_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPTLINE_LOG", "error")
    configure_logging()
    assert logging.getLogger("promptline").level == logging.ERROR


def test_configure_logging_unknown_level_defaults_to_warning() -> None:
    configure_logging("chatty")
    assert logging.getLogger("promptline").level == logging.WARNING
