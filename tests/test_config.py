"""Tests for configuration adapter."""

from pathlib import Path
from tempfile import NamedTemporaryFile

import pytest

from transit_timetables.adapters.config import AppConfig, NetworkConfigurationLoader
from transit_timetables.domain.models import RecoveryMode


def _write_toml(tmp_path: Path, content: str) -> str:
    path = tmp_path / "network.toml"
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_config_loads_defaults() -> None:
    """Given no environment variables, when loading config, then defaults are used."""
    config = AppConfig()

    assert config.frequency_cache_ttl_seconds == 5.0
    assert config.tick_interval_seconds == 1.0
    assert config.clean_timetable_interval_seconds == 30.0
    assert config.default_delay_recovery_mode == "catch_up"
    assert config.replication_enabled is True
    assert config.broadcast_topic == "timetables"


def test_config_loads_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given environment variables, when loading config, then they are used."""
    monkeypatch.setenv("FREQUENCY_CACHE_TTL_SECONDS", "2.5")
    monkeypatch.setenv("DEFAULT_DELAY_RECOVERY_MODE", "Skip_To_Next")
    monkeypatch.setenv("REPLICATION_ENABLED", "false")

    config = AppConfig()

    assert config.frequency_cache_ttl_seconds == 2.5
    assert config.default_delay_recovery_mode == "skip_to_next"
    assert config.replication_enabled is False


def test_config_validates_recovery_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given an unknown recovery mode, when loading config, then validation error is raised."""
    monkeypatch.setenv("DEFAULT_DELAY_RECOVERY_MODE", "teleport")

    with pytest.raises(ValueError, match="default_delay_recovery_mode must be one of"):
        AppConfig()


@pytest.mark.parametrize("name", ["TICK_INTERVAL_SECONDS", "TIME_SCALE", "FRAME_INTERVAL_MS"])
def test_config_rejects_non_positive_intervals(monkeypatch: pytest.MonkeyPatch, name: str) -> None:
    """Given a zero interval, when loading config, then validation error is raised."""
    monkeypatch.setenv(name, "0")

    with pytest.raises(ValueError, match="value must be positive"):
        AppConfig()


def test_config_rejects_negative_tolerance(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given a negative delay tolerance, when loading config, then validation error is raised."""
    monkeypatch.setenv("DEFAULT_MAX_DELAY_TOLERANCE", "-5")

    with pytest.raises(ValueError, match="must not be negative"):
        AppConfig()


def test_config_parses_lines_config_from_toml() -> None:
    """Given valid TOML config file, when loading config, then it can be parsed."""
    toml_content = """
[[lines]]
id = 4
name = "Airport Express"
stops = 3
vehicles = 2
"""
    with NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(toml_content)
        temp_path = f.name

    try:
        config = AppConfig(config_file=temp_path)
        parsed = config.get_lines_config()
        assert len(parsed) == 1
        assert parsed[0]["id"] == 4
        assert parsed[0]["name"] == "Airport Express"
    finally:
        Path(temp_path).unlink()


def test_config_raises_error_when_file_not_found() -> None:
    """Given non-existent config file, when loading config, then FileNotFoundError is raised."""
    config = AppConfig(config_file="nonexistent.toml")

    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        config.get_lines_config()


def test_config_raises_error_when_config_file_not_set() -> None:
    """Given config_file is None, when loading config, then ValueError is raised."""
    config = AppConfig(config_file=None)

    with pytest.raises(ValueError, match="config_file must be set"):
        config.get_lines_config()


def test_config_validates_unique_line_ids(tmp_path: Path) -> None:
    """Given two lines with the same id, when loading config, then ValueError is raised."""
    config = AppConfig(
        config_file=_write_toml(
            tmp_path,
            """
[[lines]]
id = 1
stops = 3

[[lines]]
id = 1
stops = 4
""",
        )
    )

    with pytest.raises(ValueError, match="Line IDs must be unique"):
        config.get_lines_config()


def test_config_sections_override_settings(tmp_path: Path) -> None:
    """Given [settings] and [runtime] sections, when loading, then they override defaults."""
    config = AppConfig(
        config_file=_write_toml(
            tmp_path,
            """
[settings]
clean_timetable_interval_seconds = 10.0
default_delay_recovery_mode = "HOLD_AT_TERMINUS"
default_max_delay_tolerance = 90

[runtime]
time_scale = 4.0
broadcast_topic = "depot"
""",
        )
    )

    config.get_lines_config()
    settings = config.to_timetable_settings()

    assert config.time_scale == 4.0
    assert config.broadcast_topic == "depot"
    assert settings.clean_timetable_interval_seconds == 10.0
    assert settings.default_delay_recovery_mode is RecoveryMode.HOLD_AT_TERMINUS
    assert settings.default_max_delay_tolerance == 90


@pytest.mark.parametrize(
    ("section", "entry", "message"),
    [
        ("settings", "tick_interval_seconds = 0", "value must be positive"),
        ("settings", "clean_timetable_interval_seconds = -5", "value must be positive"),
        ("settings", "delay_recovery_threshold_seconds = -1", "must not be negative"),
        ("runtime", "frame_interval_ms = 0", "value must be positive"),
    ],
)
def test_config_sections_are_validated(
    tmp_path: Path, section: str, entry: str, message: str
) -> None:
    """Given an invalid value in a TOML section, when loading, then it is rejected."""
    config = AppConfig(config_file=_write_toml(tmp_path, f"[{section}]\n{entry}\n"))

    with pytest.raises(ValueError, match=message):
        config.get_lines_config()

    assert config.tick_interval_seconds == 1.0
    assert config.clean_timetable_interval_seconds == 30.0


def test_network_loader_loads_lines(tmp_path: Path) -> None:
    """Given a network file, when loading, then line configurations are built."""
    config = AppConfig(
        config_file=_write_toml(
            tmp_path,
            """
[[lines]]
id = 1
name = "Harbour Line"
stops = 6
vehicles = 4
frequency_seconds = 450
first_slot = [0, 0, 0, 30]
separation_minutes = 7.5
auto_debounce_stops = [2, 9]
has_timetable = true

[[lines]]
id = 2
stops = 5
first_slot = [0, 0, 30]
""",
        )
    )

    lines = NetworkConfigurationLoader.load(config)

    assert [line.line_id for line in lines] == [1, 2]
    harbour = lines[0]
    assert harbour.name == "Harbour Line"
    assert harbour.frequency_seconds == 450
    assert harbour.first_slot == (0, 0, 0, 30)
    assert harbour.separation_minutes == 7.5
    assert harbour.auto_debounce_stops == [2]
    assert harbour.has_timetable is True
    assert lines[1].name == "Line 2"
    assert lines[1].first_slot is None
    assert lines[1].leg_seconds == 120


def test_network_loader_skips_invalid_lines(tmp_path: Path) -> None:
    """Given lines with a bad id or a single stop, when loading, then they are skipped."""
    config = AppConfig(
        config_file=_write_toml(
            tmp_path,
            """
[[lines]]
id = "north"
stops = 4

[[lines]]
id = 3
stops = 1

[[lines]]
id = 5
stops = 2
""",
        )
    )

    assert [line.line_id for line in NetworkConfigurationLoader.load(config)] == [5]


def test_example_config_is_loadable() -> None:
    """Given the bundled example file, when loading it, then every line is valid."""
    config = AppConfig(config_file=str(Path(__file__).parent.parent / "config.example.toml"))

    lines = NetworkConfigurationLoader.load(config)

    assert len(lines) == len(config.get_lines_config())
    assert lines
