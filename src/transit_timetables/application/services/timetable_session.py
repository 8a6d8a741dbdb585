"""Session object owning the constraint store and everything derived from it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from transit_timetables.application.services.constraint_clipboard import ConstraintClipboard
from transit_timetables.application.services.constraint_store import ConstraintStore
from transit_timetables.application.services.dispatch_evaluator import DispatchEvaluator
from transit_timetables.application.services.line_frequency_cache import LineFrequencyCache
from transit_timetables.application.services.timetable_codec import (
    decode_snapshot,
    encode_snapshot,
)
from transit_timetables.application.services.timetable_scheduler import TimetableScheduler
from transit_timetables.domain.contracts.frame_handler import FrameHandlerProtocol
from transit_timetables.domain.models.timetable_settings import TimetableSettings

if TYPE_CHECKING:
    from transit_timetables.domain.contracts.delay_recorder import DelayRecorderProtocol
    from transit_timetables.domain.contracts.frequency_provider import FrequencyProviderProtocol
    from transit_timetables.domain.contracts.timetable_broadcaster import (
        TimetableBroadcasterProtocol,
    )
    from transit_timetables.domain.contracts.transit_host import TransitHostProtocol

logger = logging.getLogger(__name__)


class TimetableSession(FrameHandlerProtocol):
    """Wires the store, frequency cache, evaluator and scheduler for one session.

    The engine path (``update``) runs the scheduler. The presentation path
    (``gui_update``) replicates the store to read-only replicas whenever
    an edit has left it dirty. Both paths run on the same event loop and
    share nothing but the store and its dirty flag.
    """

    def __init__(
        self,
        host: TransitHostProtocol,
        frequency_provider: FrequencyProviderProtocol,
        settings: TimetableSettings | None = None,
        broadcaster: TimetableBroadcasterProtocol | None = None,
        broadcast_topic: str = "timetables",
        delay_recorder: DelayRecorderProtocol | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            host: The host simulation.
            frequency_provider: Computes line frequencies for the cache.
            settings: Cache, scheduler and dispatch defaults.
            broadcaster: Publishes snapshots to replicas; replication is off if None.
            broadcast_topic: The pub/sub topic snapshots are published on.
            delay_recorder: Optional sink for observed delays.
        """
        self.host = host
        self.settings = settings or TimetableSettings()
        self.broadcaster = broadcaster
        self.broadcast_topic = broadcast_topic
        self.store = ConstraintStore(self.settings)
        self.frequency_cache = LineFrequencyCache(
            frequency_provider,
            ttl_seconds=self.settings.frequency_cache_ttl_seconds,
            full_refresh_on_line_change=self.settings.frequency_full_refresh_on_line_change,
        )
        self.evaluator = DispatchEvaluator(
            self.store, host, self.frequency_cache, delay_recorder=delay_recorder
        )
        self.scheduler = TimetableScheduler(
            self.store, host, self.evaluator, self.frequency_cache, self.settings
        )
        self.clipboard = ConstraintClipboard(self.store)
        self.replications_sent = 0

    def update(self) -> None:
        self.scheduler.update()

    async def gui_update(self) -> None:
        await self.flush_replication()

    async def flush_replication(self) -> bool:
        """Publish a snapshot if the store changed since the last one.

        The dirty flag is cleared as soon as the snapshot is taken, so an
        edit made while the broadcast is in flight is picked up next time.
        A failed broadcast sets the flag again so the next pass retries.

        Returns:
            True if a snapshot was published.
        """
        if not self.store.dirty or self.broadcaster is None:
            return False
        payload = self.save()
        self.store.mark_clean()
        if not await self.broadcaster.broadcast_update(self.broadcast_topic, payload):
            logger.warning(f"Replication to topic {self.broadcast_topic} failed, will retry")
            self.store.mark_dirty()
            return False
        self.replications_sent += 1
        return True

    def save(self) -> dict[str, Any]:
        """Return the persisted state: every line's constraints plus settings."""
        return encode_snapshot(self.store)

    def load(self, snapshot: dict[str, Any] | None) -> None:
        """Restore persisted state and cold-initialize the frequency cache.

        Raises:
            TimetableImportError: If the snapshot is malformed. The current
                state is left untouched.
        """
        lines, _ = decode_snapshot(snapshot)
        self.store.replace_all(lines)
        self.frequency_cache.cold_initialize(self.host.get_lines(), self.host.get_time())
        logger.info(f"Loaded timetables for {len(lines)} line(s)")

    def close(self) -> None:
        """End the session; the scheduler is terminated."""
        self.scheduler.shutdown()
