"""Protocols for line frequency computation and lookup."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from transit_timetables.domain.models.frequency import Frequency


class FrequencyProviderProtocol(Protocol):
    """Computes the current headway of a line."""

    def get_frequency_seconds(self, line: int) -> int | None:
        """Compute the frequency of a line.

        Args:
            line: The line ID.

        Returns:
            Seconds between vehicles, or None when the line has no frequency.
        """
        ...


class FrequencyLookupProtocol(Protocol):
    """Read access to already computed line frequencies."""

    def get(self, line: int) -> "Frequency | None":
        """Get the cached frequency of a line, or None if absent."""
        ...
