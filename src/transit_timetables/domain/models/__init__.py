"""Domain models for transit timetables."""

from transit_timetables.domain.models.constraint_type import (
    ConstraintType,
    DebounceField,
    RecoveryMode,
    SkipPatternKind,
    SlotField,
)
from transit_timetables.domain.models.debounce_config import DebounceConfig
from transit_timetables.domain.models.delay_tolerance import DelayTolerance
from transit_timetables.domain.models.errors import (
    InvalidSlotError,
    InvalidTimePeriodError,
    SlotGenerationError,
    TimetableError,
    TimetableImportError,
    TimetableValidationError,
)
from transit_timetables.domain.models.frequency import Frequency, LineFrequencyCacheEntry
from transit_timetables.domain.models.line_configuration import LineConfiguration
from transit_timetables.domain.models.schedule import FlatSchedule, PeriodSchedule
from transit_timetables.domain.models.skip_pattern import SkipPattern
from transit_timetables.domain.models.slot import HOUR_SECONDS, Slot
from transit_timetables.domain.models.stop_constraints import LineConstraints, StopConstraints
from transit_timetables.domain.models.time_period import TimePeriod
from transit_timetables.domain.models.timetable_settings import TimetableSettings
from transit_timetables.domain.models.validation_warning import ValidationWarning, WarningKind
from transit_timetables.domain.models.vehicle_state import VehicleState
from transit_timetables.domain.models.waiting_vehicle import WaitingVehicle

__all__ = [
    "HOUR_SECONDS",
    "ConstraintType",
    "DebounceConfig",
    "DebounceField",
    "DelayTolerance",
    "FlatSchedule",
    "Frequency",
    "InvalidSlotError",
    "InvalidTimePeriodError",
    "LineConstraints",
    "LineConfiguration",
    "LineFrequencyCacheEntry",
    "PeriodSchedule",
    "RecoveryMode",
    "SkipPattern",
    "SkipPatternKind",
    "Slot",
    "SlotField",
    "SlotGenerationError",
    "StopConstraints",
    "TimePeriod",
    "TimetableError",
    "TimetableImportError",
    "TimetableSettings",
    "TimetableValidationError",
    "ValidationWarning",
    "VehicleState",
    "WaitingVehicle",
    "WarningKind",
]
