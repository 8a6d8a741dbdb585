"""Read-only copy of a session's constraints, kept in sync by snapshots."""

from __future__ import annotations

import logging
from typing import Any

from transit_timetables.application.services.constraint_store import ConstraintStore
from transit_timetables.application.services.timetable_codec import decode_snapshot
from transit_timetables.domain.models.errors import TimetableImportError

logger = logging.getLogger(__name__)


class TimetableReplica:
    """Presentation-side mirror of the authoritative store."""

    def __init__(self) -> None:
        self.store = ConstraintStore()
        self.updates_applied = 0

    def apply(self, payload: dict[str, Any]) -> bool:
        """Replace the mirrored state with a received snapshot.

        A malformed snapshot is logged and ignored; the previous state is kept.

        Returns:
            True if the snapshot was applied.
        """
        try:
            lines, settings = decode_snapshot(payload)
        except TimetableImportError as e:
            logger.error(f"Ignoring malformed timetable snapshot: {e}")
            return False
        if settings is not None:
            self.store.settings = settings
        self.store.replace_all(lines)
        self.store.mark_clean()
        self.updates_applied += 1
        logger.debug(f"Replica updated with {len(lines)} line(s)")
        return True
