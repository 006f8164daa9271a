"""
Exceptions raised by the week allocator.

The allocation engine itself never raises on well-formed input; these are
raised by the model and parsing layers when a request is structurally
malformed.
"""


class InvalidInputError(ValueError):
    """Raised when a category, obligation or meeting time is malformed."""

    pass


class UnknownDayError(InvalidInputError):
    """Raised when a day name cannot be mapped to a weekday."""

    pass


class UnknownTimeBucketError(InvalidInputError):
    """Raised when a preferred time block is not morning/afternoon/evening/night."""

    pass


class InvalidTimeError(InvalidInputError):
    """Raised when an HHMM value is outside the 24h clock."""

    pass


class DuplicateObligationError(InvalidInputError):
    """Raised when two obligations share the same id."""

    pass
