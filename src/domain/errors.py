"""Exceptions raised by the fleet operations state machine and its collaborators."""

from __future__ import annotations


class ValidationError(Exception):
    """A request violates a precondition; nothing was applied.

    ``errors`` maps a field name to a human-readable reason, so the API
    layer can report every failing field at once.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__(
            "; ".join(f"{field}: {reason}" for field, reason in self.errors.items())
        )


class InvalidStateTransition(ValidationError):
    """Raised when a trip status change violates the state machine."""

    def __init__(self, message: str):
        super().__init__({"status": message})


class ConsistencyError(Exception):
    """A multi-entity write failed part way and was rolled back."""


class LockUnavailable(RuntimeError):
    """The fleet writer lock could not be acquired in time."""
