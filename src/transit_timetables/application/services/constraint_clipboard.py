"""Copy and paste of stop or line constraints."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore
    from transit_timetables.domain.models.stop_constraints import (
        LineConstraints,
        StopConstraints,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardInfo:
    """What the clipboard currently holds."""

    source_line: int
    source_stop: int | None  # None when a whole line was copied


class ConstraintClipboard:
    """Holds a detached copy of one stop's or one line's constraints."""

    def __init__(self, store: ConstraintStore) -> None:
        self.store = store
        self._stop: StopConstraints | None = None
        self._line: LineConstraints | None = None
        self._info: ClipboardInfo | None = None

    @property
    def info(self) -> ClipboardInfo | None:
        return self._info

    def has_content(self) -> bool:
        return self._info is not None

    def clear(self) -> None:
        self._stop = None
        self._line = None
        self._info = None

    def copy_stop(self, line: int, stop: int) -> bool:
        entry = self.store.get_stop(line, stop)
        if entry is None:
            return False
        self.clear()
        self._stop = self._detached(entry)
        self._info = ClipboardInfo(line, stop)
        return True

    def copy_line(self, line: int) -> bool:
        constraints = self.store.get_line(line)
        if constraints is None:
            return False
        self.clear()
        self._line = copy.deepcopy(constraints)
        for entry in self._line.stops.values():
            entry.vehicles_waiting.clear()
        self._info = ClipboardInfo(line, None)
        return True

    def paste_stop(self, line: int, stop: int) -> bool:
        """Overwrite a stop with the copied stop constraints."""
        if self._stop is None:
            return False
        self.store.set_stop_constraints(line, stop, self._detached(self._stop))
        logger.info(f"Pasted constraints onto line {line} stop {stop}")
        return True

    def paste_line(self, line: int) -> bool:
        """Overwrite a line with the copied line; stops beyond its route are pruned later."""
        if self._line is None:
            return False
        self.store.set_line_constraints(line, copy.deepcopy(self._line))
        logger.info(f"Pasted line timetable onto line {line}")
        return True

    @staticmethod
    def _detached(entry: StopConstraints) -> StopConstraints:
        duplicate = copy.deepcopy(entry)
        duplicate.vehicles_waiting.clear()
        return duplicate
