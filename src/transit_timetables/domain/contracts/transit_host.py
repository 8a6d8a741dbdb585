"""Protocol for the host simulation the timetables are applied to."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from transit_timetables.domain.models.vehicle_state import VehicleState


class TransitHostProtocol(Protocol):
    """Read access to lines and vehicles, and control over vehicle departures."""

    def get_time(self) -> float:
        """Get the current simulation time.

        Returns:
            Simulation time in seconds.
        """
        ...

    def get_lines(self) -> list[int]:
        """Get the identifiers of every active line."""
        ...

    def line_exists(self, line: int) -> bool:
        """Check whether a line entity still exists."""
        ...

    def get_line_vehicles(self, line: int) -> list[int]:
        """Get the vehicle roster of a line, in roster order."""
        ...

    def get_vehicle_state(self, vehicle: int) -> "VehicleState | None":
        """Get the current state of a vehicle, or None if it no longer exists."""
        ...

    def get_stop_count(self, line: int) -> int:
        """Get the number of stops on a line's route."""
        ...

    def get_wait_limits(self, line: int, stop: int) -> tuple[int, int]:
        """Get the (minimum, maximum) waiting time configured on the line's stop.

        Args:
            line: The line ID.
            stop: The 1-based stop index.

        Returns:
            Minimum and maximum waiting time in seconds.
        """
        ...

    def get_vehicles_at_stop(self, line: int, stop: int) -> list[int]:
        """Get the vehicles of a line currently standing at a stop."""
        ...

    def get_last_departure_times(self, line: int, stop: int) -> list[float]:
        """Get the most recent departure time from a stop of every vehicle on the line."""
        ...

    def depart_vehicle(self, vehicle: int) -> None:
        """Make a vehicle leave immediately."""
        ...

    def stop_auto_departure(self, vehicle: int) -> None:
        """Hold a vehicle at its stop until released."""
        ...

    def restart_auto_departure(self, vehicle: int) -> None:
        """Hand a held vehicle back to the host's own departure logic."""
        ...
