"""Time period domain model."""

from __future__ import annotations

from dataclasses import dataclass, field

from transit_timetables.domain.models.errors import InvalidTimePeriodError
from transit_timetables.domain.models.slot import HOUR_SECONDS, Slot


@dataclass
class TimePeriod:
    """Slots that apply only while the time within the hour is in [start, end).

    Bounds are normalised modulo one hour. A period whose start is after its
    end wraps past the top of the hour; equal bounds cover the whole hour.
    """

    start_time: int
    end_time: int
    slots: list[Slot] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidTimePeriodError(
                    f"{name} must be a non-negative number of seconds, got {value!r}"
                )
            setattr(self, name, value % HOUR_SECONDS)

    @property
    def covers_whole_hour(self) -> bool:
        return self.start_time == self.end_time

    @property
    def duration(self) -> int:
        if self.covers_whole_hour:
            return HOUR_SECONDS
        return (self.end_time - self.start_time) % HOUR_SECONDS

    def contains(self, time: float) -> bool:
        """Whether the given simulation time falls inside this period."""
        t = int(time) % HOUR_SECONDS
        if self.covers_whole_hour:
            return True
        if self.start_time < self.end_time:
            return self.start_time <= t < self.end_time
        return t >= self.start_time or t < self.end_time

    def overlaps(self, other: TimePeriod) -> bool:
        if self.covers_whole_hour or other.covers_whole_hour:
            return True
        return self.contains(other.start_time) or other.contains(self.start_time)
