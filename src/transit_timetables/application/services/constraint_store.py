"""Authoritative store of per-line, per-stop dispatch constraints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from transit_timetables.domain.models.constraint_type import (
    ConstraintType,
    DebounceField,
    RecoveryMode,
    SkipPatternKind,
    SlotField,
)
from transit_timetables.domain.models.debounce_config import (
    DEFAULT_AUTO_DEBOUNCE,
    DEFAULT_DEBOUNCE,
    DebounceConfig,
)
from transit_timetables.domain.models.delay_tolerance import DelayTolerance
from transit_timetables.domain.models.errors import InvalidSlotError, TimetableValidationError
from transit_timetables.domain.models.schedule import FlatSchedule, PeriodSchedule
from transit_timetables.domain.models.skip_pattern import SkipPattern
from transit_timetables.domain.models.stop_constraints import LineConstraints, StopConstraints
from transit_timetables.domain.models.time_period import TimePeriod
from transit_timetables.domain.models.timetable_settings import TimetableSettings

if TYPE_CHECKING:
    from transit_timetables.domain.contracts.transit_host import TransitHostProtocol
    from transit_timetables.domain.models.slot import Slot

logger = logging.getLogger(__name__)

DEFAULT_RECOVERY_RATE = 0.1


class ConstraintStore:
    """Owns every line's constraint tree.

    Stop and slot indices are 1-based. Removing a slot or period shifts
    the following ones down, so callers must re-fetch indices after a
    removal. Lookups of missing configuration return None rather than
    raising. Every mutation sets ``dirty`` until ``mark_clean`` is called.
    """

    def __init__(self, settings: TimetableSettings | None = None) -> None:
        """Initialize an empty store.

        Args:
            settings: Defaults for delay tolerance and recovery mode.
        """
        self.settings = settings or TimetableSettings()
        self.lines: dict[int, LineConstraints] = {}
        self.dirty = False

    # -- bookkeeping ---------------------------------------------------------

    def mark_dirty(self) -> None:
        self.dirty = True

    def mark_clean(self) -> None:
        self.dirty = False

    def get_line(self, line: int) -> LineConstraints | None:
        return self.lines.get(line)

    def get_stop(self, line: int, stop: int) -> StopConstraints | None:
        line_constraints = self.lines.get(line)
        if line_constraints is None:
            return None
        return line_constraints.stops.get(stop)

    def _ensure_line(self, line: int) -> LineConstraints:
        if line not in self.lines:
            self.lines[line] = LineConstraints()
        return self.lines[line]

    def _ensure_stop(self, line: int, stop: int) -> StopConstraints:
        if stop < 1:
            raise TimetableValidationError(f"Stop index must be 1 or greater, got {stop}")
        line_constraints = self._ensure_line(line)
        if stop not in line_constraints.stops:
            line_constraints.stops[stop] = StopConstraints()
        return line_constraints.stops[stop]

    def set_line_constraints(self, line: int, constraints: LineConstraints) -> None:
        """Replace a line's whole constraint tree."""
        self.lines[line] = constraints
        self.mark_dirty()

    def set_stop_constraints(self, line: int, stop: int, constraints: StopConstraints) -> None:
        """Replace one stop's constraints, creating the line if needed."""
        if constraints.constraint_type is ConstraintType.NONE:
            if not self._discard_stop(line, stop):
                return
        else:
            self._ensure_line(line).stops[stop] = constraints
        self.mark_dirty()

    def remove_line(self, line: int) -> bool:
        if self.lines.pop(line, None) is None:
            return False
        self.mark_dirty()
        return True

    def replace_all(self, lines: dict[int, LineConstraints]) -> None:
        """Replace the entire tree, as done when loading a snapshot."""
        self.lines = dict(lines)
        self.mark_dirty()

    def _discard_stop(self, line: int, stop: int) -> bool:
        line_constraints = self.lines.get(line)
        if line_constraints is None:
            return False
        return line_constraints.stops.pop(stop, None) is not None

    # -- constraint type -----------------------------------------------------

    def set_condition_type(self, line: int, stop: int, constraint_type: ConstraintType) -> None:
        """Select the constraint kind of a stop.

        Setting ``ConstraintType.NONE`` removes the stop's entry. Any other
        type creates the entry on first use. Changing the type drops the
        waiting records of the previous type.
        """
        if constraint_type is ConstraintType.NONE:
            if not self._discard_stop(line, stop):
                return
        else:
            entry = self._ensure_stop(line, stop)
            if entry.constraint_type is not constraint_type:
                entry.vehicles_waiting.clear()
            entry.constraint_type = constraint_type
        self.mark_dirty()

    def get_condition_type(self, line: int, stop: int) -> ConstraintType:
        entry = self.get_stop(line, stop)
        return entry.constraint_type if entry else ConstraintType.NONE

    def get_conditions(
        self, line: int, stop: int, constraint_type: ConstraintType
    ) -> list[Slot] | DebounceConfig | None:
        """Get the stored configuration of one constraint type.

        Args:
            line: The line ID.
            stop: The 1-based stop index.
            constraint_type: Which configuration to read.

        Returns:
            A copy of the flat slot list for ARRIVAL_DEPARTURE, the debounce
            configuration for the debounce types, or None when nothing is
            configured (including periodized stops, see ``get_time_periods``).
        """
        entry = self.get_stop(line, stop)
        if entry is None:
            return None
        if constraint_type is ConstraintType.ARRIVAL_DEPARTURE:
            if isinstance(entry.schedule, FlatSchedule):
                return list(entry.schedule.slots)
            return None
        if constraint_type is ConstraintType.DEBOUNCE:
            return entry.debounce
        if constraint_type is ConstraintType.AUTO_DEBOUNCE:
            return entry.auto_debounce
        return None

    # -- slots ---------------------------------------------------------------

    def _slot_list(self, entry: StopConstraints, period: int | None) -> list[Slot] | None:
        if isinstance(entry.schedule, FlatSchedule):
            return entry.schedule.slots if period is None else None
        if period is None or not 1 <= period <= len(entry.schedule.periods):
            return None
        return entry.schedule.periods[period - 1].slots

    def add_condition(self, line: int, stop: int, slot: Slot) -> int:
        """Append a slot and make the stop an arrival/departure stop.

        In periodized mode the slot goes to the first period, which is
        created covering the whole hour if there is none.

        Returns:
            The 1-based index of the new slot.
        """
        self.set_condition_type(line, stop, ConstraintType.ARRIVAL_DEPARTURE)
        entry = self._ensure_stop(line, stop)
        if isinstance(entry.schedule, PeriodSchedule):
            if not entry.schedule.periods:
                entry.schedule.periods.append(TimePeriod(0, 0))
            slots = entry.schedule.periods[0].slots
        else:
            slots = entry.schedule.slots
        slots.append(slot)
        self.mark_dirty()
        return len(slots)

    def insert_condition(
        self, line: int, stop: int, index: int, slot: Slot, period: int | None = None
    ) -> bool:
        """Insert a slot before the existing slot at index."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        slots = self._slot_list(entry, period)
        if slots is None or not 1 <= index <= len(slots):
            return False
        slots.insert(index - 1, slot)
        self.mark_dirty()
        return True

    def remove_condition(
        self, line: int, stop: int, index: int, period: int | None = None
    ) -> bool:
        """Remove the slot at index; later slots move down by one."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        slots = self._slot_list(entry, period)
        if slots is None or not 1 <= index <= len(slots):
            return False
        del slots[index - 1]
        self.mark_dirty()
        return True

    def remove_all_conditions(self, line: int, stop: int, constraint_type: ConstraintType) -> bool:
        """Reset the configuration of one constraint type to empty/default."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        if constraint_type is ConstraintType.ARRIVAL_DEPARTURE:
            entry.schedule = FlatSchedule()
            entry.vehicles_waiting.clear()
        elif constraint_type is ConstraintType.DEBOUNCE:
            entry.debounce = DEFAULT_DEBOUNCE
        elif constraint_type is ConstraintType.AUTO_DEBOUNCE:
            entry.auto_debounce = DEFAULT_AUTO_DEBOUNCE
        else:
            return False
        self.mark_dirty()
        return True

    def replace_conditions(self, line: int, stop: int, slots: list[Slot]) -> None:
        """Replace the stop's schedule with a flat list of slots."""
        self.set_condition_type(line, stop, ConstraintType.ARRIVAL_DEPARTURE)
        self._ensure_stop(line, stop).schedule = FlatSchedule(list(slots))
        self.mark_dirty()

    def update_arr_dep(
        self,
        line: int,
        stop: int,
        index: int,
        field: SlotField | int,
        value: int,
        period: int | None = None,
    ) -> bool:
        """Set one field of an existing slot.

        Raises:
            InvalidSlotError: If value is outside [0, 59]. Nothing is changed.

        Returns:
            False if the slot does not exist.
        """
        position = SlotField(field)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 59:
            raise InvalidSlotError(f"Slot values must be between 0 and 59, got {value!r}")
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        slots = self._slot_list(entry, period)
        if slots is None or not 1 <= index <= len(slots):
            logger.debug(f"No slot {index} at line {line} stop {stop}")
            return False
        slots[index - 1] = slots[index - 1].replace_field(position, value)
        self.mark_dirty()
        return True

    def update_debounce(
        self,
        line: int,
        stop: int,
        field: DebounceField | int,
        value: int,
        debounce_type: ConstraintType,
    ) -> bool:
        """Set the minute or second of a stop's debounce configuration."""
        if not debounce_type.is_debounce:
            raise ValueError(f"{debounce_type} is not a debounce type")
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        attribute = "debounce" if debounce_type is ConstraintType.DEBOUNCE else "auto_debounce"
        current: DebounceConfig = getattr(entry, attribute)
        if DebounceField(field) is DebounceField.MINUTE:
            updated = DebounceConfig(value, current.second)
        else:
            updated = DebounceConfig(current.minute, value)
        setattr(entry, attribute, updated)
        self.mark_dirty()
        return True

    # -- time periods --------------------------------------------------------

    def has_time_periods(self, line: int, stop: int) -> bool:
        entry = self.get_stop(line, stop)
        return entry is not None and entry.is_periodized

    def get_time_periods(self, line: int, stop: int) -> list[TimePeriod] | None:
        entry = self.get_stop(line, stop)
        if entry is None or not isinstance(entry.schedule, PeriodSchedule):
            return None
        return list(entry.schedule.periods)

    def add_time_period(
        self,
        line: int,
        stop: int,
        start_time: int,
        end_time: int,
        slots: list[Slot] | None = None,
    ) -> int | None:
        """Add a time period to an arrival/departure stop.

        The first period added converts the stop to periodized mode; any
        existing flat slots become a period covering the whole hour.

        Raises:
            InvalidTimePeriodError: If the bounds are invalid. Nothing is changed.

        Returns:
            The 1-based index of the new period after ordering by start time,
            or None if the stop is not an arrival/departure stop.
        """
        period = TimePeriod(start_time, end_time, list(slots or []))
        entry = self.get_stop(line, stop)
        if entry is None or entry.constraint_type is not ConstraintType.ARRIVAL_DEPARTURE:
            return None
        if isinstance(entry.schedule, FlatSchedule):
            legacy_slots = entry.schedule.slots
            entry.schedule = PeriodSchedule()
            if legacy_slots:
                entry.schedule.periods.append(TimePeriod(0, 0, legacy_slots))
        entry.schedule.periods.append(period)
        entry.schedule.sort()
        self.mark_dirty()
        return next(i for i, p in enumerate(entry.schedule.periods, start=1) if p is period)

    def update_time_period(
        self,
        line: int,
        stop: int,
        index: int,
        start_time: int | None = None,
        end_time: int | None = None,
        slots: list[Slot] | None = None,
    ) -> bool:
        """Change the bounds and/or slots of an existing period."""
        entry = self.get_stop(line, stop)
        if entry is None or not isinstance(entry.schedule, PeriodSchedule):
            return False
        periods = entry.schedule.periods
        if not 1 <= index <= len(periods):
            return False
        current = periods[index - 1]
        periods[index - 1] = TimePeriod(
            current.start_time if start_time is None else start_time,
            current.end_time if end_time is None else end_time,
            list(current.slots if slots is None else slots),
        )
        entry.schedule.sort()
        self.mark_dirty()
        return True

    def remove_time_period(self, line: int, stop: int, index: int) -> bool:
        """Remove a period; removing the last one returns the stop to flat mode."""
        entry = self.get_stop(line, stop)
        if entry is None or not isinstance(entry.schedule, PeriodSchedule):
            return False
        periods = entry.schedule.periods
        if not 1 <= index <= len(periods):
            return False
        del periods[index - 1]
        if not periods:
            entry.schedule = FlatSchedule()
        self.mark_dirty()
        return True

    def get_active_time_period(
        self, line: int, stop: int, now: float
    ) -> tuple[int, TimePeriod] | None:
        """Get the first period, in start-time order, that contains now."""
        entry = self.get_stop(line, stop)
        if entry is None or not isinstance(entry.schedule, PeriodSchedule):
            return None
        for index, period in enumerate(entry.schedule.periods, start=1):
            if period.contains(now):
                return index, period
        return None

    def get_active_slots(self, line: int, stop: int, now: float) -> list[Slot] | None:
        """Get the slots that apply at the given time.

        Returns:
            The flat slots, the active period's slots, an empty list when no
            period is active, or None when the stop has no configuration.
        """
        entry = self.get_stop(line, stop)
        if entry is None:
            return None
        if isinstance(entry.schedule, FlatSchedule):
            return entry.schedule.slots
        active = self.get_active_time_period(line, stop, now)
        return active[1].slots if active else []

    # -- skip patterns -------------------------------------------------------

    def set_skip_pattern(
        self,
        line: int,
        stop: int,
        kind: SkipPatternKind,
        enabled: bool = True,
        pattern: str = "A-B",
        skip_slots: set[str] | None = None,
    ) -> SkipPattern | None:
        """Configure a skip pattern on a stop that already has a constraint."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return None
        skip_pattern = SkipPattern(
            kind=kind, enabled=enabled, pattern=pattern, skip_slots=set(skip_slots or ())
        )
        entry.skip_patterns[kind] = skip_pattern
        self.mark_dirty()
        return skip_pattern

    def get_skip_pattern(self, line: int, stop: int, kind: SkipPatternKind) -> SkipPattern | None:
        entry = self.get_stop(line, stop)
        return entry.skip_patterns.get(kind) if entry else None

    def remove_skip_pattern(self, line: int, stop: int, kind: SkipPatternKind) -> bool:
        entry = self.get_stop(line, stop)
        if entry is None or entry.skip_patterns.pop(kind, None) is None:
            return False
        self.mark_dirty()
        return True

    def add_slot_skip(self, line: int, stop: int, slot: Slot) -> bool:
        """Let vehicles holding the given slot bypass the stop."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        pattern = entry.skip_patterns.get(SkipPatternKind.SLOT_BASED)
        if pattern is None:
            pattern = SkipPattern(kind=SkipPatternKind.SLOT_BASED, enabled=True)
            entry.skip_patterns[SkipPatternKind.SLOT_BASED] = pattern
        pattern.skip_slots.add(slot.key())
        self.mark_dirty()
        return True

    def remove_slot_skip(self, line: int, stop: int, slot: Slot) -> bool:
        pattern = self.get_skip_pattern(line, stop, SkipPatternKind.SLOT_BASED)
        if pattern is None or slot.key() not in pattern.skip_slots:
            return False
        pattern.skip_slots.discard(slot.key())
        self.mark_dirty()
        return True

    # -- delay tolerance and recovery ----------------------------------------

    def set_delay_tolerance(
        self,
        line: int,
        stop: int,
        enabled: bool | None = None,
        threshold_seconds: int | None = None,
    ) -> bool:
        """Change a stop's delay tolerance; unspecified parts keep their value."""
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        if threshold_seconds is not None and threshold_seconds < 0:
            raise TimetableValidationError("Delay tolerance must not be negative")
        current = self.get_delay_tolerance(line, stop)
        entry.delay_tolerance = DelayTolerance(
            enabled=current.enabled if enabled is None else enabled,
            threshold_seconds=(
                current.threshold_seconds if threshold_seconds is None else threshold_seconds
            ),
        )
        self.mark_dirty()
        return True

    def get_delay_tolerance(self, line: int, stop: int) -> DelayTolerance:
        entry = self.get_stop(line, stop)
        if entry is not None and entry.delay_tolerance is not None:
            return entry.delay_tolerance
        return DelayTolerance(
            enabled=self.settings.default_max_delay_tolerance_enabled,
            threshold_seconds=self.settings.default_max_delay_tolerance,
        )

    def set_delay_recovery_mode(self, line: int, stop: int, mode: RecoveryMode | None) -> bool:
        entry = self.get_stop(line, stop)
        if entry is None:
            return False
        entry.recovery_mode = mode
        self.mark_dirty()
        return True

    def set_line_delay_recovery_mode(self, line: int, mode: RecoveryMode | None) -> None:
        """Set or clear the line-wide override of the recovery mode."""
        self._ensure_line(line).recovery_mode = mode
        self.mark_dirty()

    def resolve_recovery_mode(self, line: int, stop: int) -> RecoveryMode:
        """Resolve the recovery mode: line override, then stop, then the default."""
        line_constraints = self.lines.get(line)
        if line_constraints is not None and line_constraints.recovery_mode is not None:
            return line_constraints.recovery_mode
        entry = self.get_stop(line, stop)
        if entry is not None and entry.recovery_mode is not None:
            return entry.recovery_mode
        return self.settings.default_delay_recovery_mode

    def set_recovery_rate(self, line: int, stop: int | None, rate: float | None) -> bool:
        """Set the gradual recovery rate of a stop, or of the whole line when stop is None."""
        if rate is not None and not 0 < rate <= 1:
            raise TimetableValidationError(f"Recovery rate must be in (0, 1], got {rate}")
        if stop is None:
            self._ensure_line(line).recovery_rate = rate
        else:
            entry = self.get_stop(line, stop)
            if entry is None:
                return False
            entry.recovery_rate = rate
        self.mark_dirty()
        return True

    def get_recovery_rate(self, line: int, stop: int) -> float:
        entry = self.get_stop(line, stop)
        if entry is not None and entry.recovery_rate is not None:
            return entry.recovery_rate
        line_constraints = self.lines.get(line)
        if line_constraints is not None and line_constraints.recovery_rate is not None:
            return line_constraints.recovery_rate
        return DEFAULT_RECOVERY_RATE

    # -- line flags ----------------------------------------------------------

    def set_has_timetable(self, line: int, enabled: bool) -> None:
        """Enable or disable constraint enforcement for a line."""
        line_constraints = self._ensure_line(line)
        line_constraints.has_timetable = enabled
        if not enabled:
            for entry in line_constraints.stops.values():
                entry.vehicles_waiting.clear()
        self.mark_dirty()

    def has_timetable(self, line: int) -> bool:
        line_constraints = self.lines.get(line)
        return line_constraints is not None and line_constraints.has_timetable

    def active_lines(self) -> set[int]:
        return {line for line, constraints in self.lines.items() if constraints.has_timetable}

    def set_force_departure(self, line: int, enabled: bool) -> None:
        self._ensure_line(line).force_departure = enabled
        self.mark_dirty()

    def get_force_departure(self, line: int) -> bool:
        line_constraints = self.lines.get(line)
        return line_constraints is not None and line_constraints.force_departure

    def set_min_wait_enabled(self, line: int, enabled: bool) -> None:
        self._ensure_line(line).min_wait_enabled = enabled
        self.mark_dirty()

    def get_min_wait_enabled(self, line: int) -> bool:
        line_constraints = self.lines.get(line)
        return line_constraints is not None and line_constraints.min_wait_enabled

    def set_max_wait_enabled(self, line: int, enabled: bool) -> None:
        self._ensure_line(line).max_wait_enabled = enabled
        self.mark_dirty()

    def get_max_wait_enabled(self, line: int) -> bool:
        line_constraints = self.lines.get(line)
        return line_constraints is not None and line_constraints.max_wait_enabled

    # -- pruning -------------------------------------------------------------

    def clean_timetable(self, host: TransitHostProtocol, now: float) -> list[int]:
        """Prune entries the host no longer backs.

        Removes lines that no longer exist, stops beyond a line's current
        stop count, and waiting records of vehicles that left the line.

        Args:
            host: The host simulation.
            now: Current simulation time, for logging.

        Returns:
            The IDs of the removed lines.
        """
        removed_lines = [line for line in self.lines if not host.line_exists(line)]
        for line in removed_lines:
            del self.lines[line]
            logger.info(f"Removed timetable of line {line} (line no longer exists)")

        for line, line_constraints in self.lines.items():
            stop_count = host.get_stop_count(line)
            stale_stops = [stop for stop in line_constraints.stops if stop > stop_count]
            for stop in stale_stops:
                del line_constraints.stops[stop]
                logger.info(f"Removed stop {stop} from timetable of line {line}")
            if stale_stops:
                self.mark_dirty()

            current_vehicles = set(host.get_line_vehicles(line))
            for entry in line_constraints.stops.values():
                for vehicle in [v for v in entry.vehicles_waiting if v not in current_vehicles]:
                    del entry.vehicles_waiting[vehicle]

        if removed_lines:
            self.mark_dirty()
        logger.debug(f"Timetable cleaned at {now:.0f}s")
        return removed_lines
