"""
Errors - Exception taxonomy shared by the engines.

- ValidationError: caller input violates a precondition
- StateError: operation invalid for the current lifecycle state
- StorageError: a persistence write failed (reported, never raised by the core)
"""

from __future__ import annotations


class CrownsError(Exception):
    """Base class for scorekeeper errors."""


class ValidationError(CrownsError):
    """Raised when caller-supplied input is invalid."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        if len(self.errors) == 1:
            message = self.errors[0]
        else:
            message = f"Validation failed with {len(self.errors)} error(s)"
        super().__init__(message)


class StateError(CrownsError):
    """Raised when an operation is not allowed in the current game state."""


class StorageError(CrownsError):
    """A persistence write for a slot did not succeed."""

    def __init__(self, slot: str, message: str | None = None):
        self.slot = slot
        super().__init__(message or f"Failed to persist '{slot}'")
