"""Broadcaster and subscriber for timetable snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyview.live_socket import pub_sub_hub
from pyview.vendor.flet.pubsub import PubSub

from transit_timetables.domain.contracts.timetable_broadcaster import (
    TimetableBroadcasterProtocol,
)

logger = logging.getLogger(__name__)


class TimetableBroadcaster(TimetableBroadcasterProtocol):
    """Broadcasts timetable snapshots via PubSub."""

    async def broadcast_update(self, topic: str, payload: dict[str, Any]) -> bool:
        """Broadcast a snapshot to all subscribers on the topic.

        Args:
            topic: The pub/sub topic to broadcast to.
            payload: Serialized timetable snapshot.

        Returns:
            False if pubsub failed; the error is logged, not raised.
        """
        try:
            pubsub = PubSub(pub_sub_hub, topic)
            await pubsub.send_all_on_topic_async(topic, payload)
            logger.debug(f"Broadcasted timetable snapshot via pubsub to topic: {topic}")
            return True
        except Exception as e:
            logger.error(f"Failed to broadcast timetable snapshot via pubsub: {e}", exc_info=True)
            return False


class TimetableSubscriber:
    """Feeds snapshots published on a topic into a callback, e.g. a replica."""

    def __init__(self, topic: str, on_snapshot: Callable[[dict[str, Any]], object]) -> None:
        self.topic = topic
        self.on_snapshot = on_snapshot
        self._pubsub: PubSub | None = None

    @property
    def subscribed(self) -> bool:
        return self._pubsub is not None

    async def start(self) -> None:
        """Subscribe to the topic."""
        if self._pubsub is not None:
            logger.warning("Timetable subscriber already running")
            return
        self._pubsub = PubSub(pub_sub_hub, f"replica:{self.topic}")
        await self._pubsub.subscribe_topic_async(self.topic, self._handle_message)
        logger.info(f"Subscribed to timetable topic: {self.topic}")

    async def stop(self) -> None:
        """Unsubscribe from every topic."""
        if self._pubsub is None:
            return
        await self._pubsub.unsubscribe_all_async()
        self._pubsub = None
        logger.info(f"Unsubscribed from timetable topic: {self.topic}")

    async def _handle_message(self, topic: str, message: Any) -> None:
        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-snapshot message on topic {topic}")
            return
        try:
            self.on_snapshot(message)
        except Exception as e:
            logger.error(f"Failed to apply timetable snapshot: {e}", exc_info=True)
