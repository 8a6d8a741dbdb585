"""Bounded-staleness cache of per-line frequencies."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from transit_timetables.domain.models.frequency import Frequency, LineFrequencyCacheEntry

if TYPE_CHECKING:
    from transit_timetables.domain.contracts.frequency_provider import FrequencyProviderProtocol

logger = logging.getLogger(__name__)


class LineFrequencyCache:
    """Keeps a frequency for every live line, at most ``ttl_seconds`` old.

    On each refresh, lines that left the host's set are purged at once and
    new lines are computed. Existing entries are only recomputed when they
    are older than the TTL, unless ``full_refresh_on_line_change`` asks for
    every entry to be recomputed whenever membership changes.
    """

    def __init__(
        self,
        provider: FrequencyProviderProtocol,
        ttl_seconds: float = 5.0,
        full_refresh_on_line_change: bool = False,
    ) -> None:
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.full_refresh_on_line_change = full_refresh_on_line_change
        self._entries: dict[int, LineFrequencyCacheEntry] = {}
        self._lines: frozenset[int] = frozenset()

    @property
    def current_lines(self) -> frozenset[int]:
        """The line set observed by the latest refresh."""
        return self._lines

    def refresh(self, current_lines: Iterable[int], now: float) -> set[int]:
        """Bring the cache up to date with the host's line set.

        Args:
            current_lines: Every active line reported by the host.
            now: Current simulation time in seconds.

        Returns:
            The lines whose frequency was recomputed.
        """
        lines = frozenset(current_lines)
        membership_changed = lines != self._lines
        if membership_changed:
            for line in self._lines - lines:
                self._entries.pop(line, None)
                logger.debug(f"Purged frequency of removed line {line}")

        recomputed: set[int] = set()
        for line in lines:
            entry = self._entries.get(line)
            if (
                entry is None
                or now - entry.last_update_time >= self.ttl_seconds
                or (membership_changed and self.full_refresh_on_line_change)
            ):
                self._compute(line, now)
                recomputed.add(line)

        self._lines = lines
        return recomputed

    def cold_initialize(self, current_lines: Iterable[int], now: float) -> None:
        """Discard everything and compute every line, as after loading a game."""
        self._entries.clear()
        self._lines = frozenset(current_lines)
        for line in self._lines:
            self._compute(line, now)
        logger.info(f"Initialized frequency cache for {len(self._lines)} line(s)")

    def _compute(self, line: int, now: float) -> None:
        seconds = self.provider.get_frequency_seconds(line)
        if seconds is not None:
            seconds = int(seconds) if seconds > 0 else None
        self._entries[line] = LineFrequencyCacheEntry(
            frequency_seconds=seconds, last_update_time=now
        )

    def get_entry(self, line: int) -> LineFrequencyCacheEntry | None:
        return self._entries.get(line)

    def get_seconds(self, line: int) -> int | None:
        entry = self._entries.get(line)
        return entry.frequency_seconds if entry else None

    def get(self, line: int) -> Frequency | None:
        """Get the cached frequency of a line, or None if absent or unknown."""
        seconds = self.get_seconds(line)
        return Frequency.from_seconds(seconds) if seconds is not None else None

    def __contains__(self, line: object) -> bool:
        return line in self._entries

    def __len__(self) -> int:
        return len(self._entries)
