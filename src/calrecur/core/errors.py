class CalrecurError(Exception):
    """Base error."""

class UnknownCalendarError(CalrecurError, KeyError):
    """Raised when a calendar name is not registered."""

class RecordFormatError(CalrecurError, ValueError):
    """Raised when a persisted record cannot be turned into engine types."""
