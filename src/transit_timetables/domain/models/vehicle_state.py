"""Vehicle state domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VehicleState:
    """Snapshot of a vehicle as reported by the host simulation."""

    vehicle: int
    line: int
    stop_index: int  # 0-based position of the stop the vehicle is at or heading to
    at_terminal: bool
    auto_departure: bool = True
    doors_open: bool = False
    doors_time: int = 0  # seconds of simulation time when the doors opened
