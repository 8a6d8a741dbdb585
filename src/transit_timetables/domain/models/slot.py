"""Slot domain model."""

from __future__ import annotations

from dataclasses import dataclass

from transit_timetables.domain.models.errors import InvalidSlotError

HOUR_SECONDS = 3600


def split_seconds(seconds: int) -> tuple[int, int]:
    """Split a time within the hour into (minute, second), wrapping modulo one hour."""
    seconds = int(seconds) % HOUR_SECONDS
    return seconds // 60, seconds % 60


@dataclass(frozen=True)
class Slot:
    """A repeating arrival/departure point within an hour-long cycle."""

    arrival_minute: int
    arrival_second: int
    departure_minute: int
    departure_second: int

    def __post_init__(self) -> None:
        for name, value in zip(
            ("arrival_minute", "arrival_second", "departure_minute", "departure_second"),
            self.as_tuple(),
            strict=True,
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSlotError(f"{name} must be an integer, got {value!r}")
            if not 0 <= value <= 59:
                raise InvalidSlotError(f"{name} must be between 0 and 59, got {value}")

    @classmethod
    def from_seconds(cls, arrival_seconds: int, departure_seconds: int) -> Slot:
        """Build a slot from two times expressed in seconds within the hour."""
        return cls(*split_seconds(arrival_seconds), *split_seconds(departure_seconds))

    @classmethod
    def from_sequence(cls, values: list[int] | tuple[int, ...]) -> Slot:
        """Build a slot from a 4-element sequence."""
        if len(values) != 4:
            raise InvalidSlotError(f"A slot needs exactly 4 values, got {len(values)}")
        return cls(*values)

    @property
    def arrival_seconds(self) -> int:
        return self.arrival_minute * 60 + self.arrival_second

    @property
    def departure_seconds(self) -> int:
        return self.departure_minute * 60 + self.departure_second

    def shifted(self, offset_seconds: int) -> Slot:
        """Return this slot moved by an offset, arrival and departure wrapping independently."""
        return Slot.from_seconds(
            self.arrival_seconds + offset_seconds,
            self.departure_seconds + offset_seconds,
        )

    def replace_field(self, position: int, value: int) -> Slot:
        """Return a copy with the 1-based field position set to value."""
        values = list(self.as_tuple())
        values[position - 1] = value
        return Slot(*values)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (
            self.arrival_minute,
            self.arrival_second,
            self.departure_minute,
            self.departure_second,
        )

    def key(self) -> str:
        """Stable string key, used for slot-based skip lists."""
        return "{}:{}:{}:{}".format(*self.as_tuple())

    def __str__(self) -> str:
        return (
            f"{self.arrival_minute:02d}:{self.arrival_second:02d}/"
            f"{self.departure_minute:02d}:{self.departure_second:02d}"
        )
