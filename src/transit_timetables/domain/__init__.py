"""Domain layer - constraint models and collaborator protocols."""

from transit_timetables.domain.models import (
    ConstraintType,
    LineConstraints,
    RecoveryMode,
    Slot,
    StopConstraints,
    TimePeriod,
)

__all__ = [
    "ConstraintType",
    "LineConstraints",
    "RecoveryMode",
    "Slot",
    "StopConstraints",
    "TimePeriod",
]
