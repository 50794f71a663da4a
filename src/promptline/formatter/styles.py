"""Translation of prompt style strings (``"bold yellow"``, ``"fg:149 bg:#1c1c1c"``) into Rich styles."""
from __future__ import annotations

from typing import Dict, Optional

from rich.color import Color, ColorParseError
from rich.style import Style

from .errors import StyleError

_COLOR_NAMES: Dict[str, str] = {
    "black": "black",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "blue": "blue",
    "purple": "magenta",
    "magenta": "magenta",
    "cyan": "cyan",
    "white": "white",
}

_ATTRIBUTES: Dict[str, str] = {
    "bold": "bold",
    "italic": "italic",
    "underline": "underline",
    "dimmed": "dim",
    "inverted": "reverse",
    "blink": "blink",
    "hidden": "conceal",
    "strikethrough": "strike",
}


def parse_color(token: str) -> Optional[Color]:
    """
    Parse a single color token.

    Accepts the eight ANSI color names (``purple`` is an alias of ``magenta``), ``bright-<name>``
    variants, 256-color palette indices (``0``-``255``) and ``#rrggbb`` hex values.

    Parameters:
        token (str): Lower-cased color token.

    Returns:
        Optional[Color]: The Rich color, or `None` if the token is not a color.
    """
    if token.startswith("#"):
        if len(token) != 7:
            return None
        try:
            return Color.parse(token)
        except ColorParseError:
            return None
    if token.isdigit():
        number = int(token)
        if 0 <= number <= 255:
            return Color.from_ansi(number)
        return None
    if token.startswith("bright-"):
        base = _COLOR_NAMES.get(token[len("bright-") :])
        if base is None:
            return None
        return Color.parse(f"bright_{base}")
    name = _COLOR_NAMES.get(token)
    if name is None:
        return None
    return Color.parse(name)


def parse_style(spec: str) -> Style:
    """
    Convert a whitespace-separated style string into a Rich `Style`.

    Tokens are processed left to right and are case-insensitive:
    - attribute keywords (``bold``, ``italic``, ``underline``, ``dimmed``, ``inverted``, ``blink``,
      ``hidden``, ``strikethrough``) switch the attribute on;
    - ``fg:<color>`` / ``bg:<color>`` set the foreground / background, a bare color sets the foreground;
    - ``none`` yields an explicit plain style regardless of the other tokens.

    Parameters:
        spec (str): Style string, e.g. ``"bold fg:149"``.

    Returns:
        Style: The combined style. An empty string produces a null style.

    Raises:
        StyleError: If a token is neither an attribute, ``none`` nor a valid color.
    """
    style = Style()
    for raw in spec.split():
        token = raw.lower()
        if token == "none":
            return Style()
        attribute = _ATTRIBUTES.get(token)
        if attribute is not None:
            style += Style(**{attribute: True})
            continue
        layer = "fg"
        if token.startswith(("fg:", "bg:")):
            layer, token = token[:2], token[3:]
        color = parse_color(token)
        if color is None:
            raise StyleError(raw, spec)
        if layer == "bg":
            style += Style(bgcolor=color)
        else:
            style += Style(color=color)
    return style
