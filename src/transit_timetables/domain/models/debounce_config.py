"""Debounce configuration domain model."""

from __future__ import annotations

from dataclasses import dataclass

from transit_timetables.domain.models.errors import TimetableValidationError


@dataclass(frozen=True)
class DebounceConfig:
    """Headway threshold (manual debounce) or target margin (auto debounce)."""

    minute: int = 0
    second: int = 0

    def __post_init__(self) -> None:
        if self.minute < 0 or not 0 <= self.second <= 59:
            raise TimetableValidationError(
                f"Invalid debounce value {self.minute}:{self.second:02d}"
            )

    @property
    def total_seconds(self) -> int:
        return self.minute * 60 + self.second

    def __str__(self) -> str:
        return f"{self.minute}:{self.second:02d}"


DEFAULT_DEBOUNCE = DebounceConfig(0, 0)
DEFAULT_AUTO_DEBOUNCE = DebounceConfig(1, 0)
