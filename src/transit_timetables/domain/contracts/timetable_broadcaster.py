"""Protocol for broadcasting timetable snapshots."""

from typing import Any, Protocol


class TimetableBroadcasterProtocol(Protocol):
    """Publishes timetable updates to read-only replicas."""

    async def broadcast_update(self, topic: str, payload: dict[str, Any]) -> bool:
        """Broadcast a snapshot to every subscriber on the topic.

        Args:
            topic: The pub/sub topic to broadcast to.
            payload: Serialized timetable snapshot.

        Returns:
            True if the snapshot was handed to the hub.
        """
        ...
