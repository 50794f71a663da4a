"""AWS profile and region module."""
from __future__ import annotations

import asyncio
import configparser
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..context import Context
from ..datatypes import AwsConfig
from ..formatter import FormatterError
from ..module import Module
from .base import match_name, new_formatter

logger = logging.getLogger(__name__)

# Earlier entries take precedence.
_PROFILE_ENV_VARS = ("AWSU_PROFILE", "AWS_VAULT", "AWS_PROFILE")
_REGION_ENV_VARS = ("AWS_DEFAULT_REGION", "AWS_REGION")


def _config_location(context: Context) -> Optional[Path]:
    explicit = context.get_env("AWS_CONFIG_FILE")
    if explicit:
        return Path(explicit).expanduser()
    home = context.get_home()
    if home is None:
        return None
    return home / ".aws" / "config"


def read_region_from_config(path: Path, profile: Optional[str]) -> Optional[str]:
    """
    Read the region for ``profile`` from an AWS CLI config file.

    Named profiles live in ``[profile NAME]`` sections; without a profile the ``[default]``
    section is used.

    Returns:
        Optional[str]: The configured region, or `None` if the file, section or key is missing.
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        loaded = parser.read(path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as exc:
        logger.debug("Unable to parse AWS config %s: %s", path, exc)
        return None
    if not loaded:
        return None
    section = f"profile {profile}" if profile else "default"
    if not parser.has_section(section):
        return None
    return parser.get(section, "region", fallback=None) or None


async def get_profile_and_region(context: Context) -> Tuple[Optional[str], Optional[str]]:
    """Resolve the active profile and region from the environment, then the AWS config file."""

    profile = next(
        (value for value in (context.get_env(name) for name in _PROFILE_ENV_VARS) if value),
        None,
    )
    region = next(
        (value for value in (context.get_env(name) for name in _REGION_ENV_VARS) if value),
        None,
    )
    if region is None:
        location = _config_location(context)
        if location is not None:
            region = await asyncio.to_thread(read_region_from_config, location, profile)
    return profile, region


def alias_region(region: str, aliases: Dict[str, str]) -> str:
    return aliases.get(region, region)


async def module(context: Context) -> Optional[Module]:
    """Show the active AWS profile and region; omitted when neither is known."""

    module = context.new_module("aws")
    config: AwsConfig = module.config

    profile, region = await get_profile_and_region(context)
    if profile is None and region is None:
        return None
    mapped_region = alias_region(region, config.region_aliases) if region is not None else None

    def resolve_value(variable: str) -> Optional[str]:
        if variable == "profile":
            return profile
        if variable == "region":
            return mapped_region
        return None

    try:
        segments = (
            new_formatter(module.name, config.format, AwsConfig.format)
            .map_meta(match_name("symbol", config.symbol))
            .map_style(match_name("style", config.style))
            .map(resolve_value)
            .render()
        )
    except FormatterError as exc:
        logger.warning("Error in module `aws`:\n%s", exc)
        return None

    module.set_segments(segments)
    return module
