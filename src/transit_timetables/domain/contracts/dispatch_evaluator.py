"""Protocol for deciding whether a waiting vehicle may depart."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from transit_timetables.domain.models.vehicle_state import VehicleState


class DispatchEvaluatorProtocol(Protocol):
    """Applies a stop's constraint to a vehicle standing at it."""

    def evaluate(
        self,
        vehicle: int,
        line: int,
        stop: int,
        roster: list[int],
        now: float,
        state: "VehicleState",
    ) -> None:
        """Hold or release a vehicle.

        Args:
            vehicle: The vehicle ID.
            line: The line ID.
            stop: The 1-based stop index the vehicle is at.
            roster: All vehicles of the line, so bunching can be judged.
            now: Current simulation time in seconds.
            state: The vehicle's state as reported by the host.
        """
        ...
