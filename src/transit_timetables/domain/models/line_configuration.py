"""Simulated line configuration domain model."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LineConfiguration:
    """Describes a line of the simulated network and its initial timetable."""

    line_id: int
    name: str
    stop_count: int
    vehicle_count: int
    leg_seconds: int = 120
    dwell_seconds: int = 30
    min_wait_seconds: int = 0
    max_wait_seconds: int = 180
    frequency_seconds: int | None = None
    has_timetable: bool = False
    force_departure: bool = False
    first_slot: tuple[int, int, int, int] | None = None
    separation_minutes: float | None = None
    auto_debounce_stops: list[int] = field(default_factory=list)
