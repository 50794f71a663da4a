"""Configuration dataclasses for the prompt and its modules."""
from dataclasses import dataclass, field
from typing import Dict, List

DEFAULT_PROMPT_FORMAT = "$all[❯](bold green) "


@dataclass
class PromptConfig:
    """Top-level prompt options."""

    format: str = DEFAULT_PROMPT_FORMAT
    command_timeout: int = 500
    scan_timeout: int = 30
    add_newline: bool = False


@dataclass
class AwsConfig:
    """Options for the AWS profile/region module."""

    format: str = "on [$symbol[$profile ]()[\\($region\\) ]()]($style)"
    symbol: str = "☁️  "
    style: str = "bold yellow"
    disabled: bool = False
    region_aliases: Dict[str, str] = field(default_factory=dict)


@dataclass
class PerlConfig:
    """Options for the Perl version module."""

    format: str = "via [$symbol$version ]($style)"
    version_format: str = "v${raw}"
    symbol: str = "🐪 "
    style: str = "bold 149"
    disabled: bool = False
    detect_extensions: List[str] = field(default_factory=lambda: ["pl", "pm", "pod"])
    detect_files: List[str] = field(
        default_factory=lambda: [
            "Makefile.PL",
            "Build.PL",
            "cpanfile",
            "cpanfile.snapshot",
            "META.json",
            "META.yml",
            ".perl-version",
        ]
    )
    detect_folders: List[str] = field(default_factory=list)


@dataclass
class PonyConfig:
    """Options for the Pony compiler version module."""

    format: str = "via [$symbol$version ]($style)"
    version_format: str = "v${raw}"
    symbol: str = "🐎 "
    style: str = "bold yellow"
    disabled: bool = False
    detect_extensions: List[str] = field(default_factory=lambda: ["pony"])
    detect_files: List[str] = field(default_factory=list)
    detect_folders: List[str] = field(default_factory=list)


@dataclass
class AppConfig:
    """Aggregated configuration loaded from the user-provided TOML file."""

    prompt: PromptConfig = field(default_factory=PromptConfig)
    aws: AwsConfig = field(default_factory=AwsConfig)
    perl: PerlConfig = field(default_factory=PerlConfig)
    pony: PonyConfig = field(default_factory=PonyConfig)
