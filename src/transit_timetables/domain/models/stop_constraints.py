"""Per-stop and per-line constraint models."""

from __future__ import annotations

from dataclasses import dataclass, field

from transit_timetables.domain.models.constraint_type import (
    ConstraintType,
    RecoveryMode,
    SkipPatternKind,
)
from transit_timetables.domain.models.debounce_config import (
    DEFAULT_AUTO_DEBOUNCE,
    DEFAULT_DEBOUNCE,
    DebounceConfig,
)
from transit_timetables.domain.models.delay_tolerance import (
    DelayTolerance,  # noqa: TC001 - dataclass field type
)
from transit_timetables.domain.models.schedule import FlatSchedule, PeriodSchedule
from transit_timetables.domain.models.skip_pattern import (
    SkipPattern,  # noqa: TC001 - dataclass field type
)
from transit_timetables.domain.models.waiting_vehicle import (
    WaitingVehicle,  # noqa: TC001 - dataclass field type
)


@dataclass
class StopConstraints:
    """Constraints attached to one stop of a line.

    Only the fields that belong to ``constraint_type`` are consulted; the
    others are kept so that switching type back and forth does not lose
    the operator's input. ``vehicles_waiting`` is runtime state: it is not
    compared and not exported.
    """

    constraint_type: ConstraintType = ConstraintType.NONE
    schedule: FlatSchedule | PeriodSchedule = field(default_factory=FlatSchedule)
    debounce: DebounceConfig = DEFAULT_DEBOUNCE
    auto_debounce: DebounceConfig = DEFAULT_AUTO_DEBOUNCE
    skip_patterns: dict[SkipPatternKind, SkipPattern] = field(default_factory=dict)
    delay_tolerance: DelayTolerance | None = None
    recovery_mode: RecoveryMode | None = None
    recovery_rate: float | None = None
    vehicles_waiting: dict[int, WaitingVehicle] = field(
        default_factory=dict, compare=False, repr=False
    )

    @property
    def is_periodized(self) -> bool:
        return isinstance(self.schedule, PeriodSchedule)


@dataclass
class LineConstraints:
    """All constraint data of a line, keyed by 1-based stop index."""

    has_timetable: bool = False
    force_departure: bool = False
    min_wait_enabled: bool = True
    max_wait_enabled: bool = False
    recovery_mode: RecoveryMode | None = None
    recovery_rate: float | None = None
    stops: dict[int, StopConstraints] = field(default_factory=dict)
