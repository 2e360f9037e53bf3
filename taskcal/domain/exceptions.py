"""
Domain-specific exception hierarchy for the task calendar application.
"""


class TaskCalError(Exception):
    """Base class for all application-level errors."""


class InvalidDurationError(TaskCalError, ValueError):
    """Raised when a slot of zero or negative length is requested."""


class SourceUnavailableError(TaskCalError):
    """
    Raised when a busy-interval source cannot be queried.

    The whole scheduling request is aborted; callers may re-issue it.
    """

    retryable = True

    def __init__(self, source: str, reason: str):
        super().__init__(f"Calendar source '{source}' unavailable: {reason}")
        self.source = source
        self.reason = reason


class CalendarAPIError(TaskCalError):
    """Raised when calendar data cannot be fetched, written or parsed."""


class TaskNotFoundError(TaskCalError):
    """Raised when an event id does not exist in the task calendar."""


class InvariantViolationError(TaskCalError):
    """Raised when internal time-window bookkeeping reaches an impossible state."""
