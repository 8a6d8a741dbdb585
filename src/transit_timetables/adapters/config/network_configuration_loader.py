"""Network configuration loader."""

import logging

from transit_timetables.adapters.config.app_config import AppConfig
from transit_timetables.domain.models.line_configuration import LineConfiguration

logger = logging.getLogger(__name__)


def _int_or(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[call-overload]
    except (ValueError, TypeError):
        return default


class NetworkConfigurationLoader:
    """Loads line configurations of the simulated network from app config."""

    @staticmethod
    def load(config: AppConfig) -> list[LineConfiguration]:
        """Load line configurations from app config."""
        lines_data = config.get_lines_config()
        line_configs: list[LineConfiguration] = []

        for line_data in lines_data:
            line_id = line_data.get("id")
            if not isinstance(line_id, int) or line_id < 1:
                logger.warning(f"Skipping line with invalid id: {line_id!r}")
                continue

            name = str(line_data.get("name", f"Line {line_id}"))
            stop_count = _int_or(line_data.get("stops"), 0)
            vehicle_count = _int_or(line_data.get("vehicles"), 0)
            if stop_count < 2:
                logger.warning(f"Skipping line {line_id}: a line needs at least two stops")
                continue

            # Optional fixed frequency; computed from the fleet when absent
            frequency_seconds = line_data.get("frequency_seconds")
            if frequency_seconds is not None:
                frequency_seconds = _int_or(frequency_seconds, 0) or None

            # First slot as [arrival_minute, arrival_second, departure_minute, departure_second]
            first_slot = line_data.get("first_slot")
            if first_slot is not None:
                if (
                    not isinstance(first_slot, list)
                    or len(first_slot) != 4
                    or not all(isinstance(v, int) for v in first_slot)
                ):
                    logger.warning(f"Ignoring malformed first_slot of line {line_id}")
                    first_slot = None
                else:
                    first_slot = tuple(first_slot)

            separation_minutes = line_data.get("separation_minutes")
            if separation_minutes is not None:
                try:
                    separation_minutes = float(separation_minutes)
                except (ValueError, TypeError):
                    separation_minutes = None

            auto_debounce_stops = line_data.get("auto_debounce_stops", [])
            if not isinstance(auto_debounce_stops, list):
                auto_debounce_stops = []
            auto_debounce_stops = [
                s for s in auto_debounce_stops if isinstance(s, int) and 1 <= s <= stop_count
            ]

            line_configs.append(
                LineConfiguration(
                    line_id=line_id,
                    name=name,
                    stop_count=stop_count,
                    vehicle_count=max(0, vehicle_count),
                    leg_seconds=max(1, _int_or(line_data.get("leg_seconds"), 120)),
                    dwell_seconds=max(0, _int_or(line_data.get("dwell_seconds"), 30)),
                    min_wait_seconds=max(0, _int_or(line_data.get("min_wait_seconds"), 0)),
                    max_wait_seconds=max(0, _int_or(line_data.get("max_wait_seconds"), 180)),
                    frequency_seconds=frequency_seconds,
                    has_timetable=bool(line_data.get("has_timetable", False)),
                    force_departure=bool(line_data.get("force_departure", False)),
                    first_slot=first_slot,
                    separation_minutes=separation_minutes,
                    auto_debounce_stops=auto_debounce_stops,
                )
            )

        return line_configs
