"""Recurring slot generation."""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import TYPE_CHECKING

from transit_timetables.domain.models.errors import SlotGenerationError
from transit_timetables.domain.models.schedule import FlatSchedule

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore
    from transit_timetables.domain.models.slot import Slot

logger = logging.getLogger(__name__)

# Separations offered to operators, in minutes. Each one divides the hour.
SEPARATION_CHOICES: tuple[float, ...] = (
    30, 20, 15, 12, 10, 7.5, 6, 5, 4, 3, 2.5, 2, 1.5, 1.2, 1,
)


def _as_fraction(separation_minutes: float) -> Fraction:
    # Whole seconds cannot resolve finer than 1/3600 of a minute.
    try:
        return Fraction(separation_minutes).limit_denominator(3600)
    except (TypeError, ValueError, OverflowError, ZeroDivisionError) as e:
        raise SlotGenerationError(f"Invalid separation: {separation_minutes!r}") from e


def slots_per_hour(separation_minutes: float) -> int:
    """Number of evenly spaced slots a separation yields per hour.

    Raises:
        SlotGenerationError: If 60 / separation is not a positive integer.
    """
    separation = _as_fraction(separation_minutes)
    if separation <= 0:
        raise SlotGenerationError(f"Separation must be positive, got {separation_minutes}")
    count = Fraction(60) / separation
    if count.denominator != 1:
        raise SlotGenerationError(
            f"A separation of {separation_minutes} minutes does not evenly divide the hour"
        )
    return int(count)


def generate_recurring(template: Slot, separation_minutes: float) -> list[Slot]:
    """Generate the slots that repeat a template every separation minutes.

    Slot i (for i = 1 .. N-1, N = 60 / separation) is the template shifted by
    ``int(i * separation * 60)`` seconds, wrapping within the hour.

    Args:
        template: The first slot of the hour.
        separation_minutes: Minutes between consecutive slots.

    Returns:
        The N - 1 additional slots, excluding the template itself.

    Raises:
        SlotGenerationError: If the separation does not evenly divide the hour.
    """
    count = slots_per_hour(separation_minutes)
    separation_seconds = _as_fraction(separation_minutes) * 60
    return [template.shifted(int(i * separation_seconds)) for i in range(1, count)]


def apply_recurring(
    store: ConstraintStore, line: int, stop: int, separation_minutes: float
) -> list[Slot]:
    """Replace a stop's slots with its first slot repeated every separation minutes.

    The store is only changed once the separation has been accepted.

    Returns:
        The stop's new slot list, template first.

    Raises:
        SlotGenerationError: If the separation is rejected or the stop has no
            flat slot to use as template.
    """
    entry = store.get_stop(line, stop)
    if entry is None or not isinstance(entry.schedule, FlatSchedule) or not entry.schedule.slots:
        raise SlotGenerationError(
            f"Line {line} stop {stop} has no arrival/departure slot to repeat"
        )
    template = entry.schedule.slots[0]
    generated = generate_recurring(template, separation_minutes)
    slots = [template, *generated]
    store.replace_conditions(line, stop, slots)
    logger.info(
        f"Generated {len(generated)} slot(s) every {separation_minutes} min "
        f"for line {line} stop {stop}"
    )
    return slots
