"""The styled text unit produced by the format engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from rich.color import ColorSystem
from rich.style import Style


@dataclass(frozen=True)
class Segment:
    """A run of text plus the style it should be painted with (`None` means unstyled)."""

    text: str
    style: Optional[Style] = None

    def with_style(self, style: Optional[Style]) -> "Segment":
        return Segment(self.text, style)

    def ansi_string(self, *, color: bool = True) -> str:
        """
        Render the segment as text wrapped in ANSI SGR sequences.

        Parameters:
            color (bool): When False the plain text is returned.

        Returns:
            str: Styled text, or the raw text if the segment is unstyled, empty or color is disabled.
        """
        if not color or not self.text or not self.style:
            return self.text
        return self.style.render(self.text, color_system=ColorSystem.TRUECOLOR)


def segments_to_plain(segments: Iterable[Segment]) -> str:
    """Concatenate segment text, dropping styles."""

    return "".join(segment.text for segment in segments)


def segments_to_ansi(segments: Iterable[Segment], *, color: bool = True) -> str:
    """Concatenate segments into a single ANSI-styled string."""

    return "".join(segment.ansi_string(color=color) for segment in segments)
