"""Exceptions raised by the content session engine."""

from __future__ import annotations


class BaskLightError(Exception):
    """Base class for recoverable engine errors."""


class SourceUnavailable(BaskLightError):
    """The remote document store could not be reached or answered with an error."""


class NotFoundError(BaskLightError, KeyError):
    """A direct lookup referenced a record that does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id!r} not found")
        self.kind = kind
        self.record_id = record_id

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidTransition(BaskLightError):
    """A playback command is not valid in the session's current state."""

    def __init__(self, action: str, state: str, reason: str | None = None):
        message = f"{action} is not allowed while {state}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.action = action
        self.state = state
        self.reason = reason


class AuthenticationRequired(BaskLightError):
    """The requested action needs a signed-in user."""
