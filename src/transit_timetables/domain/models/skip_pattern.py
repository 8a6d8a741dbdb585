"""Skip pattern domain model."""

from __future__ import annotations

from dataclasses import dataclass, field

from transit_timetables.domain.models.constraint_type import SkipPatternKind
from transit_timetables.domain.models.errors import TimetableValidationError

ALTERNATING_PATTERNS = ("A-B", "B-A")


@dataclass
class SkipPattern:
    """Rule letting some vehicles bypass a stop.

    ``pattern`` is used by alternating patterns: with "A-B" vehicles at even
    roster positions skip, with "B-A" vehicles at odd positions skip.
    ``skip_slots`` holds the keys of slots whose vehicles skip, for
    slot-based patterns.
    """

    kind: SkipPatternKind
    enabled: bool = False
    pattern: str = "A-B"
    skip_slots: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.kind is SkipPatternKind.ALTERNATING and self.pattern not in ALTERNATING_PATTERNS:
            raise TimetableValidationError(
                f"Alternating pattern must be one of {ALTERNATING_PATTERNS}, got {self.pattern!r}"
            )

    def skips_roster_position(self, position: int) -> bool:
        """Whether the vehicle at the given 1-based roster position skips."""
        if self.pattern == "A-B":
            return position % 2 == 0
        return position % 2 == 1
