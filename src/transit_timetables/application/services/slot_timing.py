"""Time arithmetic on slots within the hour cycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

from transit_timetables.domain.models.slot import HOUR_SECONDS

if TYPE_CHECKING:
    from transit_timetables.domain.models.slot import Slot
    from transit_timetables.domain.models.waiting_vehicle import WaitingVehicle

HALF_HOUR_SECONDS = HOUR_SECONDS // 2


def time_difference(a: int, b: int) -> int:
    """Shortest distance between two times within the hour, in seconds."""
    difference = abs(a - b)
    if difference > HALF_HOUR_SECONDS:
        return HOUR_SECONDS - difference
    return difference


def signed_time_offset(time: float, reference: int) -> int:
    """Offset of a time from a reference point of the hour, in [-1800, 1800)."""
    return (int(time) - reference + HALF_HOUR_SECONDS) % HOUR_SECONDS - HALF_HOUR_SECONDS


def after_arrival_slot(arrival_slot: int, arrival_time: float) -> bool:
    """Whether arrival_time lies in the half hour following the slot's arrival."""
    furthest = (arrival_slot + HALF_HOUR_SECONDS) % HOUR_SECONDS
    t = int(arrival_time) % HOUR_SECONDS
    if arrival_slot < furthest:
        return arrival_slot <= t < furthest
    return not furthest <= t < arrival_slot


def after_departure_slot(arrival_slot: int, departure_slot: int, arrival_time: float) -> bool:
    """Whether arrival_time lies outside the slot's arrival-to-departure window."""
    t = int(arrival_time) % HOUR_SECONDS
    if arrival_slot <= departure_slot:
        return t < arrival_slot or departure_slot <= t
    # window wraps past the top of the hour, e.g. 59:00 -> 01:00
    return t < arrival_slot and departure_slot <= t


def wait_time(slot: Slot, arrival_time: float) -> int:
    """Seconds a vehicle arriving at arrival_time must wait to honour the slot.

    An early vehicle waits for the slot's arrival plus its dwell time; a
    vehicle arriving within the window waits until the departure; a vehicle
    that missed the departure does not wait.
    """
    arrival = slot.arrival_seconds
    departure = slot.departure_seconds
    t = int(arrival_time)
    if not after_arrival_slot(arrival, t):
        return (departure - arrival) % HOUR_SECONDS + (arrival - t) % HOUR_SECONDS
    if not after_departure_slot(arrival, departure, t):
        return (departure - t) % HOUR_SECONDS
    return 0


def find_next_slot(
    slots: list[Slot],
    arrival_time: float,
    vehicles_waiting: dict[int, WaitingVehicle],
    now: float,
    vehicle: int | None = None,
) -> Slot | None:
    """Pick the slot a newly arrived vehicle should use.

    Starts from the slot whose arrival is closest to arrival_time and walks
    forward until it finds one that the vehicle can still make and that no
    other waiting vehicle holds. Stale records in ``vehicles_waiting`` are
    pruned along the way. If every slot is taken, the closest one is used.

    Returns:
        The chosen slot, or None if there are no slots.
    """
    if not slots:
        return None

    ordered = sorted(slots, key=lambda s: s.arrival_seconds)
    arrival_in_hour = int(arrival_time) % HOUR_SECONDS
    closest = min(
        range(len(ordered)),
        key=lambda i: time_difference(ordered[i].arrival_seconds, arrival_in_hour),
    )

    waiting_slots: dict[int, Slot] = {}
    departed_slots: dict[int, Slot] = {}
    if len(slots) == 1:
        for other in [v for v in vehicles_waiting if v != vehicle]:
            del vehicles_waiting[other]
    else:
        for other, record in list(vehicles_waiting.items()):
            if other == vehicle:
                continue
            if record.slot is None or record.departure_time <= now:
                del vehicles_waiting[other]
            elif arrival_time <= record.departure_time:
                waiting_slots[other] = record.slot
            else:
                departed_slots[other] = record.slot

    count = len(ordered)
    for offset in range(count):
        slot = ordered[(closest + offset) % count]
        available = True
        if wait_time(slot, arrival_time) <= 0:
            available = False
        elif slot in waiting_slots.values():
            available = False
            for other in list(departed_slots):
                vehicles_waiting.pop(other, None)
                del departed_slots[other]
        else:
            for other, departed in list(departed_slots.items()):
                if departed == slot:
                    available = False
                else:
                    vehicles_waiting.pop(other, None)
                    del departed_slots[other]
        if available:
            return slot

    return ordered[closest]


def format_seconds(seconds: float) -> str:
    """Render a time within the hour as mm:ss."""
    total = int(seconds) % HOUR_SECONDS
    return f"{total // 60:02d}:{total % 60:02d}"


def format_delta(seconds: float) -> str:
    """Render a signed duration as +m:ss or -m:ss."""
    sign = "-" if seconds < 0 else "+"
    total = abs(int(seconds))
    return f"{sign}{total // 60}:{total % 60:02d}"
