"""Delay recorder keeping observed delays in memory."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from transit_timetables.domain.contracts.delay_recorder import DelayRecorderProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DelayRecord:
    """One observed delay."""

    kind: str  # "arrival" or "departure"
    line: int
    stop: int
    vehicle: int
    delay: float
    time: float


class DelayLog(DelayRecorderProtocol):
    """Keeps the most recent delays, bounded to max_records."""

    def __init__(self, max_records: int = 1000) -> None:
        self.records: deque[DelayRecord] = deque(maxlen=max_records)

    def record_arrival_delay(
        self, line: int, stop: int, vehicle: int, delay: float, now: float
    ) -> None:
        self.records.append(DelayRecord("arrival", line, stop, vehicle, delay, now))

    def record_departure_delay(
        self, line: int, stop: int, vehicle: int, delay: float, now: float
    ) -> None:
        self.records.append(DelayRecord("departure", line, stop, vehicle, delay, now))
        if delay > 0:
            logger.debug(f"Vehicle {vehicle} left line {line} stop {stop} {delay:.0f}s late")

    def average_delay(self, line: int, kind: str = "arrival") -> float | None:
        """Mean delay of a line's records of one kind, or None without records."""
        delays = [r.delay for r in self.records if r.line == line and r.kind == kind]
        if not delays:
            return None
        return sum(delays) / len(delays)
