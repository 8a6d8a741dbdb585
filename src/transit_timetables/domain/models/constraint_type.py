"""Enumerations describing constraint kinds and dispatch strategies."""

from enum import Enum, IntEnum


class ConstraintType(Enum):
    """The single constraint kind active at a stop."""

    NONE = "none"
    ARRIVAL_DEPARTURE = "arr_dep"
    DEBOUNCE = "debounce"
    AUTO_DEBOUNCE = "auto_debounce"

    @property
    def is_debounce(self) -> bool:
        """Whether this type is one of the headway-based types."""
        return self in (ConstraintType.DEBOUNCE, ConstraintType.AUTO_DEBOUNCE)


class RecoveryMode(Enum):
    """Strategy applied when a vehicle runs late against its slot."""

    CATCH_UP = "catch_up"
    SKIP_TO_NEXT = "skip_to_next"
    HOLD_AT_TERMINUS = "hold_at_terminus"
    GRADUAL_RECOVERY = "gradual_recovery"


class SkipPatternKind(Enum):
    """How vehicles are selected to bypass a stop."""

    ALTERNATING = "alternating"
    SLOT_BASED = "slot_based"


class SlotField(IntEnum):
    """Position of an editable field inside a slot (1-based, like slot indices)."""

    ARRIVAL_MINUTE = 1
    ARRIVAL_SECOND = 2
    DEPARTURE_MINUTE = 3
    DEPARTURE_SECOND = 4


class DebounceField(IntEnum):
    """Position of an editable field inside a debounce configuration."""

    MINUTE = 1
    SECOND = 2
