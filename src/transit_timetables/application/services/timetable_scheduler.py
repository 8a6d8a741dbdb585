"""Cooperative, self-throttled scheduler that applies constraints once per second."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Generator
from enum import Enum
from typing import TYPE_CHECKING

from transit_timetables.domain.models.timetable_settings import TimetableSettings

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore
    from transit_timetables.application.services.line_frequency_cache import LineFrequencyCache
    from transit_timetables.domain.contracts.dispatch_evaluator import DispatchEvaluatorProtocol
    from transit_timetables.domain.contracts.transit_host import TransitHostProtocol

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Lifecycle of the scheduler's cooperative task."""

    IDLE = "idle"
    RUNNING = "running"
    FAULTED = "faulted"
    RESTARTING = "restarting"
    TERMINATED = "terminated"


class TimetableScheduler:
    """Drives dispatch evaluation from the host's per-frame callback.

    The work runs in a generator that is resumed once per frame. It yields
    until a full tick interval of simulation time has passed since the last
    pass, so the processing pass runs at most once per resumption and once
    per simulated second however irregular the frames are.

    If the task raises, the error is logged and the task is replaced by a
    fresh one. The time of the last pass is kept here rather than in the
    task, so the replacement waits for the next tick boundary and a failed
    tick is never run twice.
    """

    def __init__(
        self,
        store: ConstraintStore,
        host: TransitHostProtocol,
        evaluator: DispatchEvaluatorProtocol,
        frequency_cache: LineFrequencyCache,
        settings: TimetableSettings | None = None,
    ) -> None:
        self.store = store
        self.host = host
        self.evaluator = evaluator
        self.frequency_cache = frequency_cache
        self.settings = settings or TimetableSettings()
        self.state = SchedulerState.IDLE
        self.restart_count = 0
        self.ticks_processed = 0
        self.last_fault: Exception | None = None
        self._task: Generator[None, None, None] | None = None
        self._last_tick_time: float | None = None
        self._last_clean_time: float | None = None

    @property
    def last_tick_time(self) -> float | None:
        return self._last_tick_time

    def update(self) -> None:
        """Per-frame callback: refresh line frequencies and resume the task once."""
        if self.state is SchedulerState.TERMINATED:
            return

        try:
            self.frequency_cache.refresh(self.host.get_lines(), self.host.get_time())
        except Exception as e:
            logger.error(f"Failed to refresh line frequencies: {e}", exc_info=True)

        if self._task is None:
            self._task = self._run()
            self.state = SchedulerState.RUNNING
            logger.info("Created timetable scheduler task")
        elif inspect.getgeneratorstate(self._task) == inspect.GEN_CLOSED:
            logger.warning("Timetable scheduler task is no longer running; recreating it")
            self._restart()

        try:
            next(self._task)
        except StopIteration:
            logger.warning("Timetable scheduler task returned; recreating it")
            self._restart()
        except Exception as e:
            self.state = SchedulerState.FAULTED
            self.last_fault = e
            logger.error(f"Timetable scheduler task failed: {e}", exc_info=True)
            self._restart()

    def _restart(self) -> None:
        self.state = SchedulerState.RESTARTING
        self._task = self._run()
        self.restart_count += 1
        self.state = SchedulerState.RUNNING
        logger.info(f"Recreated timetable scheduler task (restart #{self.restart_count})")

    def shutdown(self) -> None:
        """Stop the task for good; only used when the host process ends."""
        if self._task is not None:
            self._task.close()
        self._task = None
        self.state = SchedulerState.TERMINATED
        logger.info("Timetable scheduler terminated")

    def _run(self) -> Generator[None, None, None]:
        while True:
            now = self.host.get_time()
            while (
                self._last_tick_time is not None
                and now - self._last_tick_time < self.settings.tick_interval_seconds
            ):
                yield
                now = self.host.get_time()

            self._last_tick_time = now
            self.process_tick(now)
            self._clean_if_due(now)
            yield

    def process_tick(self, now: float) -> None:
        """Evaluate every vehicle standing at a stop of an active line."""
        for line in sorted(self.frequency_cache.current_lines):
            if not self.store.has_timetable(line) or not self.host.line_exists(line):
                continue
            roster = self.host.get_line_vehicles(line)
            for vehicle in roster:
                state = self.host.get_vehicle_state(vehicle)
                if state is None or not state.at_terminal:
                    continue
                self.evaluator.evaluate(vehicle, line, state.stop_index + 1, roster, now, state)
        self.ticks_processed += 1

    def _clean_if_due(self, now: float) -> None:
        if (
            self._last_clean_time is None
            or now - self._last_clean_time >= self.settings.clean_timetable_interval_seconds
        ):
            self.store.clean_timetable(self.host, now)
            self._last_clean_time = now
