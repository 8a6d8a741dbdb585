"""Non-blocking consistency checks of arrival/departure timetables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from transit_timetables.application.services.slot_timing import format_seconds
from transit_timetables.domain.models.constraint_type import ConstraintType
from transit_timetables.domain.models.schedule import PeriodSchedule
from transit_timetables.domain.models.slot import HOUR_SECONDS
from transit_timetables.domain.models.validation_warning import ValidationWarning, WarningKind

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore
    from transit_timetables.domain.models.slot import Slot

MIN_GAP_SECONDS = 30
MAX_BACKWARDS_DWELL_SECONDS = 60
FREQUENCY_TOLERANCE = 0.2


def _check_slots(slots: list[Slot]) -> list[ValidationWarning]:
    warnings: list[ValidationWarning] = []
    seen: set[Slot] = set()
    for index, slot in enumerate(slots, start=1):
        dwell = (slot.departure_seconds - slot.arrival_seconds) % HOUR_SECONDS
        if dwell == 0:
            warnings.append(
                ValidationWarning(
                    WarningKind.DWELL_TOO_SHORT,
                    f"Slot {slot} departs at its arrival time (no dwell time)",
                    index,
                )
            )
        elif (
            slot.departure_seconds < slot.arrival_seconds
            and dwell > MAX_BACKWARDS_DWELL_SECONDS
        ):
            warnings.append(
                ValidationWarning(
                    WarningKind.DWELL_TOO_LONG,
                    f"Slot {slot} departs before it arrives (dwell of {dwell}s across the hour)",
                    index,
                )
            )
        if slot in seen:
            warnings.append(
                ValidationWarning(WarningKind.DUPLICATE_SLOT, f"Slot {slot} is listed twice", index)
            )
        seen.add(slot)

    ordered = sorted(set(slots), key=lambda s: s.arrival_seconds)
    if len(ordered) > 1:
        for previous, current in zip(ordered, ordered[1:] + ordered[:1], strict=True):
            gap = (current.arrival_seconds - previous.departure_seconds) % HOUR_SECONDS
            if gap < MIN_GAP_SECONDS:
                warnings.append(
                    ValidationWarning(
                        WarningKind.SLOTS_TOO_CLOSE,
                        f"Only {gap}s between departure "
                        f"{format_seconds(previous.departure_seconds)} and next arrival "
                        f"{format_seconds(current.arrival_seconds)}",
                        slots.index(current) + 1,
                    )
                )
    return warnings


def validate_stop(
    store: ConstraintStore, line: int, stop: int, frequency_seconds: int | None = None
) -> list[ValidationWarning]:
    """Check one stop's slots and periods.

    Args:
        store: Constraint data.
        line: The line ID.
        stop: The 1-based stop index.
        frequency_seconds: The line's current frequency, if known.

    Returns:
        Findings, empty when the stop has no arrival/departure timetable.
    """
    entry = store.get_stop(line, stop)
    if entry is None or entry.constraint_type is not ConstraintType.ARRIVAL_DEPARTURE:
        return []

    if not isinstance(entry.schedule, PeriodSchedule):
        slots = entry.schedule.slots
        warnings = _check_slots(slots)
        if frequency_seconds and slots:
            expected = HOUR_SECONDS / len(set(slots))
            if abs(expected - frequency_seconds) > expected * FREQUENCY_TOLERANCE:
                warnings.append(
                    ValidationWarning(
                        WarningKind.FREQUENCY_MISMATCH,
                        f"{len(set(slots))} slot(s) per hour imply a vehicle every "
                        f"{expected:.0f}s, but the line runs every {frequency_seconds}s",
                    )
                )
        return warnings

    warnings = []
    periods = entry.schedule.periods
    for index, period in enumerate(periods, start=1):
        if not period.slots:
            warnings.append(
                ValidationWarning(
                    WarningKind.EMPTY_PERIOD,
                    f"Period {format_seconds(period.start_time)}-{format_seconds(period.end_time)}"
                    " has no slots; vehicles depart without waiting",
                    index,
                )
            )
        warnings.extend(_check_slots(period.slots))
        for other_index in range(index + 1, len(periods) + 1):
            if period.overlaps(periods[other_index - 1]):
                warnings.append(
                    ValidationWarning(
                        WarningKind.OVERLAPPING_PERIODS,
                        f"Periods {index} and {other_index} overlap; the earlier one wins",
                        other_index,
                    )
                )
    return warnings


def validate_line(
    store: ConstraintStore, line: int, frequency_seconds: int | None = None
) -> dict[int, list[ValidationWarning]]:
    """Check every stop of a line, keeping only stops with findings."""
    line_constraints = store.get_line(line)
    if line_constraints is None:
        return {}
    results = {
        stop: validate_stop(store, line, stop, frequency_seconds)
        for stop in sorted(line_constraints.stops)
    }
    return {stop: warnings for stop, warnings in results.items() if warnings}
