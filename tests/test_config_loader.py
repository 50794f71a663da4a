from __future__ import annotations

import logging
from pathlib import Path

import pytest

from promptline.config_loader import (
    ConfigError,
    build_config,
    default_config_path,
    load_config,
    load_config_or_default,
)
from promptline.datatypes import DEFAULT_PROMPT_FORMAT, AppConfig


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "promptline.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_when_empty(tmp_path: Path) -> None:
    cfg = load_config(_write_config(tmp_path, ""))
    assert cfg == AppConfig()
    assert cfg.prompt.format == DEFAULT_PROMPT_FORMAT
    assert cfg.perl.version_format == "v${raw}"


def test_top_level_keys_and_module_tables(tmp_path: Path) -> None:
    cfg = load_config(
        _write_config(
            tmp_path,
            """
format = "$aws$all"
command_timeout = 1000
add_newline = true

[aws]
symbol = "aws "
region_aliases = { "us-east-1" = "va" }

[perl]
detect_extensions = ["pl"]
disabled = true
""",
        )
    )
    assert cfg.prompt.format == "$aws$all"
    assert cfg.prompt.command_timeout == 1000
    assert cfg.prompt.add_newline is True
    assert cfg.aws.symbol == "aws "
    assert cfg.aws.region_aliases == {"us-east-1": "va"}
    assert cfg.perl.detect_extensions == ["pl"]
    assert cfg.perl.disabled is True
    assert cfg.pony.disabled is False


def test_utf8_bom_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "bom.toml"
    path.write_bytes(b"\xef\xbb\xbf" + b'[pony]\nsymbol = "P "\n')
    assert load_config(path).pony.symbol == "P "


def test_integral_strings_and_flag_strings_are_coerced() -> None:
    cfg = build_config({"scan_timeout": "45", "aws": {"disabled": "1"}})
    assert cfg.prompt.scan_timeout == 45
    assert cfg.aws.disabled is True


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"aws": {"colour": "red"}}, "Invalid key in \\[aws\\]: colour"),
        ({"unknown_key": 1}, "Invalid key in \\[prompt\\]: unknown_key"),
        ({"command_timeout": 0}, "command_timeout must be > 0"),
        ({"scan_timeout": -5}, "scan_timeout must be > 0"),
        ({"command_timeout": True}, "prompt.command_timeout must be an integer"),
        ({"add_newline": "maybe"}, "prompt.add_newline must be a boolean"),
        ({"perl": {"symbol": 3}}, "perl.symbol must be a string"),
        ({"perl": {"detect_files": "cpanfile"}}, "perl.detect_files must be an array of strings"),
        ({"aws": {"region_aliases": {"a": 1}}}, "aws.region_aliases.a must be a string"),
        ({"aws": "yes"}, "\\[aws\\] must be a table"),
    ],
)
def test_invalid_values(raw, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        build_config(raw)


def test_unknown_module_table_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="promptline"):
        cfg = build_config({"rust": {"symbol": "R"}})
    assert cfg == AppConfig()
    assert "ignoring table [rust]" in caplog.text


def test_invalid_toml_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Failed to parse TOML"):
        load_config(_write_config(tmp_path, "format = "))


def test_non_utf8_raises(tmp_path: Path) -> None:
    path = tmp_path / "latin1.toml"
    path.write_bytes('symbol = "é"'.encode("latin-1"))
    with pytest.raises(ConfigError, match="UTF-8"):
        load_config(path)


def test_default_config_path_prefers_env(tmp_path: Path) -> None:
    target = tmp_path / "custom.toml"
    assert default_config_path({"PROMPTLINE_CONFIG": str(target)}) == target


def test_default_config_path_falls_back_to_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    assert default_config_path({}) == tmp_path / ".config" / "promptline.toml"


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    assert load_config_or_default(tmp_path / "absent.toml") == AppConfig()


def test_invalid_file_yields_defaults_with_warning(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write_config(tmp_path, "command_timeout = -1\n")
    with caplog.at_level(logging.WARNING, logger="promptline"):
        assert load_config_or_default(path) == AppConfig()
    assert "Config parsing failed" in caplog.text


def test_env_override_is_used(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = _write_config(tmp_path, '[aws]\nstyle = "red"\n')
    monkeypatch.setenv("PROMPTLINE_CONFIG", str(path))
    assert load_config_or_default().aws.style == "red"
