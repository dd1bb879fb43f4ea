"""Listener error taxonomy.

ResolutionError, ProvisioningError and SubscriptionError abort startup after whatever
was already created has been rolled back. PollError is handed to the consumer and the
loop keeps going. TeardownError collects every cleanup failure of a run.
"""
from __future__ import annotations

from typing import Sequence


class ListenerError(Exception):
    """Base error for listener failures."""


class StartupError(ListenerError):
    """Base for errors that abort setup.

    rollback_error holds the outcome of unwinding resources created before the failure.
    """

    rollback_error: "TeardownError | None" = None


class ResolutionError(StartupError):
    """Raised when the topic ARN cannot be read from the parameter store."""


class ProvisioningError(StartupError):
    """Raised when the queue cannot be created or its ARN cannot be read."""


class SubscriptionError(StartupError):
    """Raised when the queue cannot be subscribed to the topic."""


class PollError(ListenerError):
    """Raised when a receive or delete call fails; reported to the consumer, never fatal."""


class OperationCancelledError(ListenerError):
    """Raised when a call stops because the listen context was cancelled. Not a failure."""


class TeardownError(ListenerError):
    """One or more cleanup steps failed. errors keeps every underlying failure."""

    def __init__(self, message: str, errors: Sequence[BaseException] = ()) -> None:
        super().__init__(message)
        self.errors: list[BaseException] = list(errors)

    @classmethod
    def combine(cls, errors: Sequence["TeardownError"]) -> "TeardownError | None":
        if not errors:
            return None
        if len(errors) == 1:
            return errors[0]
        flattened: list[BaseException] = []
        for error in errors:
            flattened.extend(error.errors or [error])
        return cls("\n".join(str(error) for error in errors), flattened)
