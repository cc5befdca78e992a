"""Exception types raised by the schedule engine."""

from typing import Dict, Optional


class MaintSyncError(Exception):
    """Base class for all schedule engine errors."""


class SubscriptionError(MaintSyncError):
    """The document store failed to deliver a snapshot."""


class InvalidDateError(MaintSyncError, ValueError):
    """A date value could not be parsed into an instant."""


class WriteFailure(MaintSyncError):
    """A merge-write or field update was rejected by the store."""


class ValidationError(MaintSyncError):
    """User input failed validation. ``errors`` maps field name to message."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(message)


class UnknownTaskError(MaintSyncError, LookupError):
    """No upcoming task or history record has the given id."""
