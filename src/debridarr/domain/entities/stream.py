"""Results exposed by the resolution use cases."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StreamEntry:
    """One entry of a stream listing (maps 1:1 to a Stremio stream object)."""

    name: str
    description_lines: tuple[str, ...] = field(default_factory=tuple)
    url: str = "#"
    disabled: bool = False

    @property
    def description(self) -> str:
        return "\n".join(self.description_lines)


@dataclass(frozen=True)
class DownloadResult:
    """Resolved download URL, or the placeholder video when none is available."""

    url: str
    is_fallback: bool = False
