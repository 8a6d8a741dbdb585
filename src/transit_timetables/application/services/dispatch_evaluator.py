"""Hold-or-release decisions for vehicles waiting at constrained stops."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from transit_timetables.application.services.debounce_resolver import resolve_auto_margin
from transit_timetables.application.services.slot_timing import (
    find_next_slot,
    signed_time_offset,
    wait_time,
)
from transit_timetables.domain.contracts.dispatch_evaluator import DispatchEvaluatorProtocol
from transit_timetables.domain.models.constraint_type import (
    ConstraintType,
    RecoveryMode,
    SkipPatternKind,
)
from transit_timetables.domain.models.waiting_vehicle import WaitingVehicle

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore
    from transit_timetables.domain.contracts.delay_recorder import DelayRecorderProtocol
    from transit_timetables.domain.contracts.frequency_provider import FrequencyLookupProtocol
    from transit_timetables.domain.contracts.transit_host import TransitHostProtocol
    from transit_timetables.domain.models.stop_constraints import StopConstraints
    from transit_timetables.domain.models.vehicle_state import VehicleState

logger = logging.getLogger(__name__)

LARGE_DELAY_SECONDS = 300
MEDIUM_DELAY_SECONDS = 120
CATCH_UP_BUFFER_SECONDS = 30


class DispatchEvaluator(DispatchEvaluatorProtocol):
    """Applies each stop's constraint to the vehicles standing at it.

    A vehicle whose stop has a constraint is first taken off the host's
    automatic departure. Once its doors are open it is held until the
    constraint allows it to leave, then either forced out or handed back
    to the host, depending on the line's force-departure flag.
    """

    def __init__(
        self,
        store: ConstraintStore,
        host: TransitHostProtocol,
        frequencies: FrequencyLookupProtocol,
        delay_recorder: DelayRecorderProtocol | None = None,
    ) -> None:
        """Initialize the evaluator.

        Args:
            store: Constraint data.
            host: The host simulation, for wait limits and vehicle control.
            frequencies: Current line frequencies, for auto debounce.
            delay_recorder: Optional sink for observed delays.
        """
        self.store = store
        self.host = host
        self.frequencies = frequencies
        self.delay_recorder = delay_recorder

    def evaluate(
        self,
        vehicle: int,
        line: int,
        stop: int,
        roster: list[int],
        now: float,
        state: VehicleState,
    ) -> None:
        if self.should_skip_stop(vehicle, line, stop, roster):
            if not state.auto_departure:
                self.host.restart_auto_departure(vehicle)
            return

        if self.store.get_condition_type(line, stop) is not ConstraintType.NONE:
            self._depart_if_ready(vehicle, line, stop, roster, now, state)
        elif not state.auto_departure:
            self.host.restart_auto_departure(vehicle)

    def _depart_if_ready(
        self,
        vehicle: int,
        line: int,
        stop: int,
        roster: list[int],
        now: float,
        state: VehicleState,
    ) -> None:
        if state.auto_departure:
            self.host.stop_auto_departure(vehicle)
            return
        if not state.doors_open:
            return
        if not self.ready_to_depart(vehicle, state.doors_time, roster, line, stop, now):
            return
        if self.store.get_force_departure(line):
            self.host.depart_vehicle(vehicle)
        else:
            self.host.restart_auto_departure(vehicle)

    def ready_to_depart(
        self,
        vehicle: int,
        arrival_time: int,
        roster: list[int],
        line: int,
        stop: int,
        now: float,
    ) -> bool:
        """Decide whether a vehicle that arrived at arrival_time may leave now."""
        entry = self.store.get_stop(line, stop)
        if entry is None or entry.constraint_type is ConstraintType.NONE:
            return True
        if entry.constraint_type is ConstraintType.ARRIVAL_DEPARTURE:
            return self._ready_arrival_departure(vehicle, arrival_time, line, stop, now, entry)
        return self._ready_debounce(vehicle, arrival_time, roster, line, stop, now, entry)

    # -- skip patterns -------------------------------------------------------

    def should_skip_stop(self, vehicle: int, line: int, stop: int, roster: list[int]) -> bool:
        """Whether a skip pattern lets this vehicle bypass the stop."""
        entry = self.store.get_stop(line, stop)
        if entry is None:
            return False

        slot_pattern = entry.skip_patterns.get(SkipPatternKind.SLOT_BASED)
        if slot_pattern is not None and slot_pattern.enabled:
            record = entry.vehicles_waiting.get(vehicle)
            if record is not None and record.slot is not None:
                if record.slot.key() in slot_pattern.skip_slots:
                    return True

        alternating = entry.skip_patterns.get(SkipPatternKind.ALTERNATING)
        if alternating is not None and alternating.enabled and vehicle in roster:
            return alternating.skips_roster_position(roster.index(vehicle) + 1)
        return False

    # -- arrival/departure slots ---------------------------------------------

    def _ready_arrival_departure(
        self,
        vehicle: int,
        arrival_time: int,
        line: int,
        stop: int,
        now: float,
        entry: StopConstraints,
    ) -> bool:
        slots = self.store.get_active_slots(line, stop, now)
        if not slots:
            return True

        waiting = entry.vehicles_waiting
        record = waiting.get(vehicle)
        valid = False
        if record is not None:
            if record.arrival_time is None or record.arrival_time < arrival_time:
                # left over from an earlier visit to this stop
                del waiting[vehicle]
                record = None
            elif record.slot is not None:
                valid = record.slot in slots
                if valid:
                    valid = self._keep_slot_despite_delay(vehicle, line, stop, now, record)
                    if not valid:
                        waiting.pop(vehicle, None)

        if not valid or record is None:
            slot = find_next_slot(slots, arrival_time, waiting, now, vehicle)
            if slot is None:
                return True
            departure_time = self.departure_time(
                line, stop, arrival_time, wait_time(slot, arrival_time)
            )
            arrival_delay = signed_time_offset(arrival_time, slot.arrival_seconds)
            if self.delay_recorder is not None:
                self.delay_recorder.record_arrival_delay(line, stop, vehicle, arrival_delay, now)
            if arrival_delay > self.store.settings.delay_recovery_threshold_seconds:
                departure_time = self._recover_late_arrival(
                    line, stop, arrival_time, arrival_delay, departure_time
                )
            record = WaitingVehicle(
                departure_time=departure_time, arrival_time=arrival_time, slot=slot
            )
            waiting[vehicle] = record

        if record.departure_time <= now:
            del waiting[vehicle]
            if self.delay_recorder is not None:
                self.delay_recorder.record_departure_delay(
                    line, stop, vehicle, now - record.departure_time, now
                )
            return True
        return False

    def _keep_slot_despite_delay(
        self, vehicle: int, line: int, stop: int, now: float, record: WaitingVehicle
    ) -> bool:
        """Apply delay tolerance and recovery to a vehicle already holding a slot."""
        delay = now - record.departure_time
        tolerance = self.store.get_delay_tolerance(line, stop)
        if tolerance.enabled and delay > tolerance.threshold_seconds:
            logger.info(
                f"Vehicle {vehicle} on line {line} is {delay:.0f}s late at stop {stop}, "
                f"beyond the {tolerance.threshold_seconds}s tolerance; moving to next slot"
            )
            return False
        if delay <= self.store.settings.delay_recovery_threshold_seconds:
            return True

        mode = self.store.resolve_recovery_mode(line, stop)
        adjusted = self.apply_delay_recovery(
            line, stop, delay, record.departure_time, now, record.arrival_time or now, mode
        )
        if adjusted is None:
            return False
        record.departure_time = adjusted
        return True

    def apply_delay_recovery(
        self,
        line: int,
        stop: int,
        delay: float,
        scheduled_departure: float,
        now: float,
        arrival_time: float,
        mode: RecoveryMode,
    ) -> float | None:
        """Adjust a late vehicle's departure according to the recovery mode.

        Returns:
            The adjusted departure time, or None when the vehicle should give
            up its slot and take the next one.
        """
        if delay <= self.store.settings.delay_recovery_threshold_seconds:
            return scheduled_departure

        large = delay > LARGE_DELAY_SECONDS
        medium = delay > MEDIUM_DELAY_SECONDS
        if mode is RecoveryMode.SKIP_TO_NEXT:
            return None
        if mode is RecoveryMode.HOLD_AT_TERMINUS and self.is_terminus(line, stop):
            factor = 0.6 if large else (0.5 if medium else 0.4)
            return max(scheduled_departure, arrival_time + delay * factor)
        if mode is RecoveryMode.GRADUAL_RECOVERY:
            rate = self.store.get_recovery_rate(line, stop)
            return scheduled_departure + delay * (1 - rate)
        if mode is RecoveryMode.CATCH_UP and large:
            return max(scheduled_departure, now - CATCH_UP_BUFFER_SECONDS)
        return max(scheduled_departure, now)

    def _recover_late_arrival(
        self,
        line: int,
        stop: int,
        arrival_time: int,
        arrival_delay: int,
        departure_time: float,
    ) -> float:
        mode = self.store.resolve_recovery_mode(line, stop)
        if mode is RecoveryMode.HOLD_AT_TERMINUS and self.is_terminus(line, stop):
            return max(departure_time, arrival_time + arrival_delay * 0.5)
        if mode is RecoveryMode.GRADUAL_RECOVERY:
            rate = self.store.get_recovery_rate(line, stop)
            return max(float(arrival_time), departure_time - arrival_delay * rate)
        return departure_time

    def is_terminus(self, line: int, stop: int) -> bool:
        return stop == 1 or stop == self.host.get_stop_count(line)

    def departure_time(self, line: int, stop: int, arrival_time: float, wait: float) -> float:
        """Departure time for a wait, clamped to the stop's enabled wait limits."""
        wait = max(wait, 0)
        min_wait, max_wait = self.host.get_wait_limits(line, stop)
        if self.store.get_min_wait_enabled(line) and wait < min_wait:
            wait = min_wait
        if self.store.get_max_wait_enabled(line) and wait > max_wait:
            wait = max_wait
        return arrival_time + wait

    # -- debounce ------------------------------------------------------------

    def _ready_debounce(
        self,
        vehicle: int,
        arrival_time: int,
        roster: list[int],
        line: int,
        stop: int,
        now: float,
        entry: StopConstraints,
    ) -> bool:
        waiting = entry.vehicles_waiting
        record = waiting.get(vehicle)
        if record is not None and record.arrival_time is not None:
            if record.arrival_time < arrival_time:
                del waiting[vehicle]
                record = None

        if record is None:
            if len(roster) == 1:
                departure_time: float | None = now
            elif self._another_vehicle_arrived_earlier(vehicle, arrival_time, line, stop):
                return False
            elif entry.constraint_type is ConstraintType.DEBOUNCE:
                departure_time = self._manual_debounce_departure(arrival_time, line, stop, entry)
            else:
                departure_time = self._auto_debounce_departure(arrival_time, line, stop, entry)
            if departure_time is None:
                return True
            record = WaitingVehicle(departure_time=departure_time, arrival_time=arrival_time)
            waiting[vehicle] = record

        if record.departure_time <= now:
            del waiting[vehicle]
            return True
        return False

    def previous_departure_time(self, line: int, stop: int, entry: StopConstraints) -> float:
        """Latest departure from the stop, actual or planned."""
        times = list(self.host.get_last_departure_times(line, stop))
        times.extend(record.departure_time for record in entry.vehicles_waiting.values())
        return max(times, default=0)

    def _manual_debounce_departure(
        self, arrival_time: int, line: int, stop: int, entry: StopConstraints
    ) -> float:
        previous = self.previous_departure_time(line, stop, entry)
        next_departure = previous + entry.debounce.total_seconds
        return self.departure_time(line, stop, arrival_time, next_departure - arrival_time)

    def _auto_debounce_departure(
        self, arrival_time: int, line: int, stop: int, entry: StopConstraints
    ) -> float | None:
        frequency = self.frequencies.get(line)
        if frequency is None:
            logger.debug(f"No frequency for line {line}; releasing without auto debounce")
            return None
        margin = resolve_auto_margin(frequency, entry.auto_debounce)
        if margin is None:
            return self.departure_time(line, stop, arrival_time, 0)
        previous = self.previous_departure_time(line, stop, entry)
        return self.departure_time(line, stop, arrival_time, previous + margin - arrival_time)

    def _another_vehicle_arrived_earlier(
        self, vehicle: int, arrival_time: int, line: int, stop: int
    ) -> bool:
        at_stop = self.host.get_vehicles_at_stop(line, stop)
        if len(at_stop) <= 1:
            return False
        for other in at_stop:
            if other == vehicle:
                continue
            other_state = self.host.get_vehicle_state(other)
            if other_state is None:
                continue
            if other_state.doors_open:
                return other_state.doors_time < arrival_time
            return True
        return False
