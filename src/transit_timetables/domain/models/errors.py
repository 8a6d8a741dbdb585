"""Domain exceptions for timetable constraints."""


class TimetableError(Exception):
    """Base class for all timetable errors."""


class TimetableValidationError(TimetableError, ValueError):
    """Raised when user input is rejected before any state is changed."""


class InvalidSlotError(TimetableValidationError):
    """Raised when a slot field lies outside [0, 59]."""


class InvalidTimePeriodError(TimetableValidationError):
    """Raised when a time period cannot be built from the given bounds."""


class SlotGenerationError(TimetableValidationError):
    """Raised when a separation does not evenly tile the hour."""


class TimetableImportError(TimetableError):
    """Raised when an exported timetable cannot be parsed or applied."""
