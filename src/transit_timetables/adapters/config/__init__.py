"""Configuration adapters."""

from transit_timetables.adapters.config.app_config import AppConfig
from transit_timetables.adapters.config.network_configuration_loader import (
    NetworkConfigurationLoader,
)

__all__ = ["AppConfig", "NetworkConfigurationLoader"]
