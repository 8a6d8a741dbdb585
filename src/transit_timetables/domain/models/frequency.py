"""Line frequency domain models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Frequency:
    """Headway between consecutive vehicles of a line, as minutes and seconds."""

    minute: int
    second: int

    @classmethod
    def from_seconds(cls, seconds: float) -> Frequency:
        total = int(seconds)
        return cls(minute=total // 60, second=total % 60)

    @property
    def total_seconds(self) -> int:
        return self.minute * 60 + self.second

    def __str__(self) -> str:
        return f"{self.minute}:{self.second:02d}"


@dataclass
class LineFrequencyCacheEntry:
    """Cached frequency of a line and the time it was computed.

    A ``frequency_seconds`` of None records that the host could not provide a
    frequency (for example, a line without vehicles).
    """

    frequency_seconds: int | None
    last_update_time: float
