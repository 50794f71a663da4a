"""Container for one module's rendered output."""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .segment import Segment, segments_to_ansi, segments_to_plain
from .terminal import wrap_colorseq_for_shell


class Module:
    """Rendered output of one prompt module along with its configuration and timing."""

    def __init__(self, name: str, config: Any = None) -> None:
        self.name = name
        self.config = config
        self.segments: List[Segment] = []
        self.duration = 0.0

    def get_name(self) -> str:
        return self.name

    def set_segments(self, segments: Iterable[Segment]) -> None:
        self.segments = list(segments)

    def get_segments(self) -> List[Segment]:
        return list(self.segments)

    def is_empty(self) -> bool:
        """Return True when the module produced no visible text."""

        return not any(segment.text for segment in self.segments)

    def to_plain(self) -> str:
        return segments_to_plain(self.segments)

    def ansi_string(self, *, color: bool = True, shell: Optional[str] = None) -> str:
        """Render the module's segments as ANSI text, wrapped for ``shell`` when given."""

        return wrap_colorseq_for_shell(segments_to_ansi(self.segments, color=color), shell)

    def __repr__(self) -> str:
        return f"Module(name={self.name!r}, text={self.to_plain()!r})"
