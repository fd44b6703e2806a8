# src/tasknest/errors.py

"""Error taxonomy shared by every tasknest layer."""

from __future__ import annotations


class TaskNestError(Exception):
    """Base class for all tasknest errors."""


class ValidationError(TaskNestError, ValueError):
    """Malformed input rejected before it reaches storage."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateUserError(TaskNestError):
    """Sign-up with an email that already has an account."""


class InvalidCredentialsError(TaskNestError):
    """Sign-in with an unknown email or a wrong password."""


class StorageError(TaskNestError):
    """Durable store read/write failure (quota, corrupt JSON, I/O)."""
