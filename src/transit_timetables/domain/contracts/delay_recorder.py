"""Protocol for recording observed delays."""

from typing import Protocol


class DelayRecorderProtocol(Protocol):
    """Receives the delays observed while dispatching vehicles."""

    def record_arrival_delay(
        self, line: int, stop: int, vehicle: int, delay: float, now: float
    ) -> None:
        """Record how late a vehicle arrived against its slot."""
        ...

    def record_departure_delay(
        self, line: int, stop: int, vehicle: int, delay: float, now: float
    ) -> None:
        """Record how late a vehicle departed against its planned time."""
        ...
