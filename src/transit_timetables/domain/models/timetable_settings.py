"""Runtime settings consumed by the timetable services."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from transit_timetables.domain.models.constraint_type import RecoveryMode


@dataclass(frozen=True)
class TimetableSettings:
    """Read-only key/value settings for cache, scheduler and dispatch defaults."""

    frequency_cache_ttl_seconds: float = 5.0
    frequency_full_refresh_on_line_change: bool = False
    tick_interval_seconds: float = 1.0
    clean_timetable_interval_seconds: float = 30.0
    default_delay_recovery_mode: RecoveryMode = RecoveryMode.CATCH_UP
    default_max_delay_tolerance: int = 300
    default_max_delay_tolerance_enabled: bool = False
    delay_recovery_threshold_seconds: int = 30

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["default_delay_recovery_mode"] = self.default_delay_recovery_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimetableSettings:
        """Build settings from a snapshot, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "default_delay_recovery_mode" in values:
            values["default_delay_recovery_mode"] = RecoveryMode(
                values["default_delay_recovery_mode"]
            )
        return cls(**values)
