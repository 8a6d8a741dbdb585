"""Runtime record of a vehicle held at a stop."""

from __future__ import annotations

from dataclasses import dataclass

from transit_timetables.domain.models.slot import Slot  # noqa: TC001 - dataclass field type


@dataclass
class WaitingVehicle:
    """Departure decision cached for a vehicle while it waits at a stop."""

    departure_time: float
    arrival_time: int | None = None
    slot: Slot | None = None
