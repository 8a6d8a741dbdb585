"""12-factor configuration adapter using environment variables and TOML config."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from transit_timetables.domain.models.constraint_type import RecoveryMode
from transit_timetables.domain.models.timetable_settings import TimetableSettings

# Keys of the [settings] TOML section that override fields of the same name
_SETTINGS_KEYS = (
    "frequency_cache_ttl_seconds",
    "frequency_full_refresh_on_line_change",
    "tick_interval_seconds",
    "clean_timetable_interval_seconds",
    "default_delay_recovery_mode",
    "default_max_delay_tolerance",
    "default_max_delay_tolerance_enabled",
    "delay_recovery_threshold_seconds",
)
_RUNTIME_KEYS = ("frame_interval_ms", "time_scale", "replication_enabled", "broadcast_topic")


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Frequency cache
    frequency_cache_ttl_seconds: float = Field(
        default=5.0, description="Seconds before a cached line frequency is recomputed"
    )
    frequency_full_refresh_on_line_change: bool = Field(
        default=False,
        description="Recompute every line's frequency when a line is added or removed",
    )

    # Scheduler
    tick_interval_seconds: float = Field(
        default=1.0, description="Simulated seconds between departure evaluations"
    )
    clean_timetable_interval_seconds: float = Field(
        default=30.0, description="Simulated seconds between pruning of stale constraints"
    )

    # Dispatch defaults
    default_delay_recovery_mode: str = Field(
        default="catch_up",
        description="Recovery mode for stops and lines without their own setting",
    )
    default_max_delay_tolerance: int = Field(
        default=300, description="Default delay in seconds after which a slot is abandoned"
    )
    default_max_delay_tolerance_enabled: bool = Field(
        default=False, description="Apply the default delay tolerance to every stop"
    )
    delay_recovery_threshold_seconds: int = Field(
        default=30, description="Delays below this many seconds are not recovered"
    )

    # Frame driver
    frame_interval_ms: int = Field(
        default=200, description="Wall-clock milliseconds between simulation frames"
    )
    time_scale: float = Field(
        default=1.0, description="Simulated seconds that pass per wall-clock second"
    )

    # Replication
    replication_enabled: bool = Field(
        default=True, description="Publish timetable snapshots to read-only replicas"
    )
    broadcast_topic: str = Field(
        default="timetables", description="Pub/sub topic timetable snapshots are published on"
    )

    # Files
    # If not set, will try config.example.toml in project root as fallback
    config_file: str | None = Field(
        default="config.example.toml",
        description="Path to TOML configuration file describing the simulated network",
    )
    timetable_file: str | None = Field(
        default=None, description="Exported timetable to import on startup"
    )
    snapshot_file: str | None = Field(
        default=None, description="Session snapshot to load on startup and save on shutdown"
    )

    @field_validator("default_delay_recovery_mode")
    @classmethod
    def validate_recovery_mode(cls, v: str) -> str:
        """Validate the recovery mode is one of the known modes."""
        valid = [mode.value for mode in RecoveryMode]
        if v.lower() not in valid:
            raise ValueError(f"default_delay_recovery_mode must be one of {', '.join(valid)}")
        return v.lower()

    @field_validator(
        "frequency_cache_ttl_seconds",
        "tick_interval_seconds",
        "clean_timetable_interval_seconds",
        "frame_interval_ms",
        "time_scale",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate intervals and rates are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("default_max_delay_tolerance", "delay_recovery_threshold_seconds")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate thresholds are not negative."""
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    def _load_toml_data(self) -> dict[str, Any]:
        """Load and parse TOML file, updating settings present in it."""
        if not self.config_file:
            raise ValueError("config_file must be set to load the network configuration")

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

            # Assignments run the field validators
            settings = toml_data.get("settings", {})
            for key in _SETTINGS_KEYS:
                if key in settings:
                    setattr(self, key, settings[key])

            runtime = toml_data.get("runtime", {})
            for key in _RUNTIME_KEYS:
                if key in runtime:
                    setattr(self, key, runtime[key])

            return toml_data

    def get_lines_config(self) -> list[dict[str, Any]]:
        """Parse and return the [[lines]] tables of the TOML file.

        Raises ValueError if line IDs are not unique.
        """
        toml_data = self._load_toml_data()

        lines = toml_data.get("lines", [])
        if not isinstance(lines, list):
            raise ValueError("TOML config 'lines' must be a list")

        ids = [line.get("id") for line in lines if isinstance(line, dict)]
        if len(ids) != len(set(ids)):
            duplicates = [i for i in ids if ids.count(i) > 1]
            raise ValueError(f"Line IDs must be unique. Duplicate IDs found: {set(duplicates)}")

        return [line for line in lines if isinstance(line, dict)]

    def to_timetable_settings(self) -> TimetableSettings:
        """Return the settings the timetable core runs with."""
        return TimetableSettings(
            frequency_cache_ttl_seconds=self.frequency_cache_ttl_seconds,
            frequency_full_refresh_on_line_change=self.frequency_full_refresh_on_line_change,
            tick_interval_seconds=self.tick_interval_seconds,
            clean_timetable_interval_seconds=self.clean_timetable_interval_seconds,
            default_delay_recovery_mode=RecoveryMode(self.default_delay_recovery_mode),
            default_max_delay_tolerance=self.default_max_delay_tolerance,
            default_max_delay_tolerance_enabled=self.default_max_delay_tolerance_enabled,
            delay_recovery_threshold_seconds=self.delay_recovery_threshold_seconds,
        )
