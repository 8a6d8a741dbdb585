"""Validation warning domain model."""

from dataclasses import dataclass
from enum import Enum


class WarningKind(Enum):
    """Category of a timetable validation finding."""

    DWELL_TOO_SHORT = "dwell_too_short"
    DWELL_TOO_LONG = "dwell_too_long"
    SLOTS_TOO_CLOSE = "slots_too_close"
    DUPLICATE_SLOT = "duplicate_slot"
    OVERLAPPING_PERIODS = "overlapping_periods"
    EMPTY_PERIOD = "empty_period"
    FREQUENCY_MISMATCH = "frequency_mismatch"


@dataclass(frozen=True)
class ValidationWarning:
    """A non-blocking finding about a stop's timetable."""

    kind: WarningKind
    message: str
    index: int | None = None  # 1-based slot or period index the finding refers to
