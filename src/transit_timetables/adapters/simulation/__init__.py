"""In-process host simulation used by the runner and the tests."""

from transit_timetables.adapters.simulation.delay_log import DelayLog, DelayRecord
from transit_timetables.adapters.simulation.in_memory_host import InMemoryTransitHost

__all__ = ["DelayLog", "DelayRecord", "InMemoryTransitHost"]
