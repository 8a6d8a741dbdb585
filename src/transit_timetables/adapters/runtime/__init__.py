"""Runtime adapters."""

from transit_timetables.adapters.runtime.frame_driver import FrameDriver

__all__ = ["FrameDriver"]
