"""Auto-debounce margin derivation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from transit_timetables.domain.models.debounce_config import DebounceConfig
    from transit_timetables.domain.models.frequency import Frequency

UNDEFINED_MARGIN_TEXT = "--"


def resolve_auto_margin(frequency: Frequency, target: DebounceConfig) -> int | None:
    """Slack between a line's headway and the auto-debounce target.

    Args:
        frequency: Current headway of the line.
        target: The auto-debounce target of the stop.

    Returns:
        The margin in seconds, or None when the target exceeds the headway.
    """
    margin = (frequency.minute - target.minute) * 60 + frequency.second - target.second
    if margin < 0:
        return None
    return margin


def format_margin(margin: int | None) -> str:
    """Render a margin as m:ss, or "--" when undefined."""
    if margin is None:
        return UNDEFINED_MARGIN_TEXT
    return f"{margin // 60}:{margin % 60:02d}"
