"""Delay tolerance domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DelayTolerance:
    """Maximum lateness a vehicle may carry before its slot is abandoned."""

    enabled: bool
    threshold_seconds: int
