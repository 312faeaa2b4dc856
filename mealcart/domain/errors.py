"""Error taxonomy shared by the client, the check-state store and the API."""
from typing import Optional


class MealCartError(Exception):
    """Base class for errors that are reported to the user."""

    retryable = False

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class PreconditionError(MealCartError):
    """Missing credential or plan id; rejected before any network call."""


class AggregateFetchError(MealCartError):
    """Categorized list or status could not be fetched. The caller may retry."""

    retryable = True


class PersistenceError(MealCartError):
    """A check-state change could not be persisted."""
