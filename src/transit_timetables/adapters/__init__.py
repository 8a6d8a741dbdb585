"""Adapters layer - configuration, replication and host integrations."""

from transit_timetables.adapters.config import AppConfig
from transit_timetables.adapters.simulation import InMemoryTransitHost

__all__ = [
    "AppConfig",
    "InMemoryTransitHost",
]
