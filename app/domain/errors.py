"""Recurrence engine error taxonomy"""


class RecurrenceError(Exception):
    """Base class for all recurrence engine errors"""


class ConfigurationError(RecurrenceError, ValueError):
    """Missing or invalid frequency-specific configuration"""


class UnknownFrequencyError(RecurrenceError, ValueError):
    pass


class UnsupportedFrequencyError(RecurrenceError, ValueError):
    """Frequency has no period key (every_n_days)"""


class UnsupportedOperationError(RecurrenceError):
    """Operation requires period keying, but the pattern is not period-based"""


class OutOfRangeError(RecurrenceError, ValueError):
    pass


class NoMatchError(RecurrenceError, ValueError):
    pass


class PeriodKeyParseError(RecurrenceError, ValueError):
    pass


class InvalidRangeError(RecurrenceError, ValueError):
    pass


class ConflictError(RecurrenceError):
    """Duplicate instance for a period, rejected by the store"""


class NotFoundError(RecurrenceError, LookupError):
    pass
