"""Error types raised by the donation tracker."""

from __future__ import annotations


UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class DonationTrackerError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DonationTrackerError, ValueError):
    """Input rejected locally before any remote call was issued."""


class RemoteError(DonationTrackerError):
    """The remote store or auth service reported a failure."""


class UnexpectedError(DonationTrackerError):
    """Any other failure raised while a mutation was running."""

    def __init__(self, message: str = UNEXPECTED_ERROR_MESSAGE) -> None:
        super().__init__(message)


class RecordLockedError(DonationTrackerError):
    """Another update or delete for the same donation is still in flight."""
