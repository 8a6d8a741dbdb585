"""Slot storage of an arrival/departure stop.

A stop holds either one always-active list of slots or a list of time
periods, each with its own slots. The two forms never coexist.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from transit_timetables.domain.models.slot import Slot  # noqa: TC001 - dataclass field type
from transit_timetables.domain.models.time_period import TimePeriod  # noqa: TC001


@dataclass
class FlatSchedule:
    """Slots that are active at any time of the hour."""

    slots: list[Slot] = field(default_factory=list)


@dataclass
class PeriodSchedule:
    """Slots grouped by the part of the hour they apply to, ordered by start time."""

    periods: list[TimePeriod] = field(default_factory=list)

    def sort(self) -> None:
        self.periods.sort(key=lambda period: period.start_time)


Schedule = FlatSchedule | PeriodSchedule
