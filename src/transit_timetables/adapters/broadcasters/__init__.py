"""Timetable replication over pub/sub."""

from transit_timetables.adapters.broadcasters.timetable_broadcaster import (
    TimetableBroadcaster,
    TimetableSubscriber,
)

__all__ = ["TimetableBroadcaster", "TimetableSubscriber"]
