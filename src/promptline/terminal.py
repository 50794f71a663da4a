"""Terminal output helpers: ANSI escape handling and shell-specific wrapping."""
from __future__ import annotations

import os
import re
from typing import Mapping, Optional

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

# Shells whose line editor needs escape sequences marked as zero-width.
_SHELL_WRAPPERS = {
    "bash": ("\\[", "\\]"),
    "zsh": ("%{", "%}"),
}


def color_enabled(*, no_color: bool, env: Optional[Mapping[str, str]] = None) -> bool:
    """
    Decide whether styled output should be produced.

    Combines the explicit ``no_color`` flag with the ``NO_COLOR`` environment variable; any
    non-empty ``NO_COLOR`` value disables color, as the convention requires.
    """
    environ = os.environ if env is None else env
    if no_color:
        return False
    return not bool(environ.get("NO_COLOR"))


def strip_ansi(text: str) -> str:
    """Remove SGR escape sequences from ``text``."""

    return ANSI_ESCAPE_RE.sub("", text)


def wrap_colorseq_for_shell(text: str, shell: Optional[str]) -> str:
    """
    Wrap every ANSI SGR sequence in the markers the given shell uses for non-printing characters.

    Bash expects ``\\[``/``\\]`` and zsh expects ``%{``/``%}`` around escape codes so the prompt
    width is computed correctly; other shells receive the text unchanged.

    Parameters:
        text (str): Prompt text containing ANSI escape sequences.
        shell (Optional[str]): Shell name such as ``"bash"`` or ``"zsh"``.

    Returns:
        str: Text with escape sequences wrapped for ``shell``.
    """
    wrapper = _SHELL_WRAPPERS.get((shell or "").strip().lower())
    if wrapper is None:
        return text
    begin, end = wrapper
    return ANSI_ESCAPE_RE.sub(lambda match: f"{begin}{match.group(0)}{end}", text)


def detect_shell(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Best-effort shell name from ``PROMPTLINE_SHELL`` or the basename of ``SHELL``."""

    environ = os.environ if env is None else env
    explicit = environ.get("PROMPTLINE_SHELL", "")
    if explicit.strip():
        return explicit.strip().lower()
    shell_path = environ.get("SHELL", "")
    if not shell_path:
        return None
    return os.path.basename(shell_path).lower() or None
