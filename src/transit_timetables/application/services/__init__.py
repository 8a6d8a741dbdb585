"""Application services for timetable constraints."""

from transit_timetables.application.services.constraint_clipboard import ConstraintClipboard
from transit_timetables.application.services.constraint_store import ConstraintStore
from transit_timetables.application.services.dispatch_evaluator import DispatchEvaluator
from transit_timetables.application.services.line_frequency_cache import LineFrequencyCache
from transit_timetables.application.services.timetable_codec import ImportMode
from transit_timetables.application.services.timetable_replica import TimetableReplica
from transit_timetables.application.services.timetable_scheduler import (
    SchedulerState,
    TimetableScheduler,
)
from transit_timetables.application.services.timetable_session import TimetableSession

__all__ = [
    "ConstraintClipboard",
    "ConstraintStore",
    "DispatchEvaluator",
    "ImportMode",
    "LineFrequencyCache",
    "SchedulerState",
    "TimetableReplica",
    "TimetableScheduler",
    "TimetableSession",
]
