"""Configuration loader that parses and validates user-provided TOML."""

from __future__ import annotations

import logging
import os
import tomllib
import typing
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .datatypes import AppConfig, AwsConfig, PerlConfig, PonyConfig, PromptConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PROMPTLINE_CONFIG"

_MODULE_SECTIONS: Dict[str, type] = {
    "aws": AwsConfig,
    "perl": PerlConfig,
    "pony": PonyConfig,
}


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


def _coerce_bool(value: Any, dotted_key: str) -> bool:
    """Return a bool, coercing simple 0/1 representations when necessary."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"0", "1"}:
            return normalized == "1"
        if normalized in {"true", "false"}:
            return normalized == "true"
    raise ConfigError(f"{dotted_key} must be a boolean (use true/false).")


def _coerce_int(value: Any, dotted_key: str) -> int:
    """Return an int, accepting integral strings."""

    if isinstance(value, bool):
        raise ConfigError(f"{dotted_key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ConfigError(f"{dotted_key} must be an integer")


def _coerce_str(value: Any, dotted_key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{dotted_key} must be a string")
    return value


def _coerce_str_list(value: Any, dotted_key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{dotted_key} must be an array of strings")
    return list(value)


def _coerce_str_table(value: Any, dotted_key: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ConfigError(f"[{dotted_key}] must be a table")
    for key, item in value.items():
        if not isinstance(item, str):
            raise ConfigError(f"{dotted_key}.{key} must be a string")
    return dict(value)


def _sanitize_section(raw: Any, name: str, cls: type) -> Any:
    """
    Coerce a raw TOML table into an instance of ``cls`` with cleaned values.

    Parameters:
        raw (Any): Raw TOML section data.
        name (str): Section name used when reporting validation errors.
        cls: Dataclass type used to construct the section object.

    Returns:
        Any: Instantiated dataclass populated with values from ``raw``.

    Raises:
        ConfigError: If the section is not a table or contains invalid keys or values.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    cls_fields = {field.name: field for field in fields(cls)}
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        field = cls_fields.get(key)
        if field is None:
            raise ConfigError(f"Invalid key in [{name}]: {key}")
        dotted_key = f"{name}.{key}"
        origin = typing.get_origin(field.type)
        if field.type is bool:
            cleaned[key] = _coerce_bool(value, dotted_key)
        elif field.type is int:
            cleaned[key] = _coerce_int(value, dotted_key)
        elif field.type is str:
            cleaned[key] = _coerce_str(value, dotted_key)
        elif origin is list:
            cleaned[key] = _coerce_str_list(value, dotted_key)
        elif origin is dict:
            cleaned[key] = _coerce_str_table(value, dotted_key)
        else:
            cleaned[key] = value
    try:
        return cls(**cleaned)
    except TypeError as exc:
        raise ConfigError(f"Invalid keys in [{name}]: {exc}") from exc


def build_config(raw: Mapping[str, Any]) -> AppConfig:
    """
    Build an `AppConfig` from an already-decoded TOML mapping.

    Top-level scalar keys configure the prompt itself; tables named after a module configure that
    module. Tables for unknown modules are ignored with a warning.

    Raises:
        ConfigError: If any value fails validation.
    """
    prompt_section: Dict[str, Any] = {}
    module_sections: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in _MODULE_SECTIONS:
            module_sections[key] = value
        elif isinstance(value, dict):
            logger.warning("Config: ignoring table [%s] for unknown module", key)
        else:
            prompt_section[key] = value

    app = AppConfig(
        prompt=_sanitize_section(prompt_section, "prompt", PromptConfig),
        aws=_sanitize_section(module_sections.get("aws", {}), "aws", AwsConfig),
        perl=_sanitize_section(module_sections.get("perl", {}), "perl", PerlConfig),
        pony=_sanitize_section(module_sections.get("pony", {}), "pony", PonyConfig),
    )

    if app.prompt.command_timeout <= 0:
        raise ConfigError("command_timeout must be > 0")
    if app.prompt.scan_timeout <= 0:
        raise ConfigError("scan_timeout must be > 0")
    return app


def load_config(path: str | Path) -> AppConfig:
    """
    Load and validate configuration from a TOML file.

    Parameters:
        path (str | Path): Location of the TOML file.

    Returns:
        AppConfig: Validated configuration with defaults filled in.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file is not UTF-8, TOML parsing fails, or any validation rule is violated.
    """

    with open(path, "rb") as handle:
        raw_bytes = handle.read()
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        raw = tomllib.loads(raw_bytes.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc
    return build_config(raw)


def default_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``$PROMPTLINE_CONFIG`` if set, else ``~/.config/promptline.toml``."""

    environ = os.environ if env is None else env
    override = environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "promptline.toml"


def load_config_or_default(path: Optional[str | Path] = None) -> AppConfig:
    """
    Load configuration, falling back to defaults when the file is missing or invalid.

    A missing file is silent; an invalid one is reported as a warning so the prompt still renders.
    """
    config_path = Path(path).expanduser() if path is not None else default_config_path()
    try:
        return load_config(config_path)
    except FileNotFoundError:
        logger.debug("No config file at %s; using defaults", config_path)
    except ConfigError as exc:
        logger.warning("Config parsing failed for %s: %s; using defaults", config_path, exc)
    except OSError as exc:
        logger.warning("Unable to read config %s: %s; using defaults", config_path, exc)
    return AppConfig()
