"""
Repository exception hierarchy.

Recoverable outcomes (rejected attributes, writes that touch no rows) are
reported through return values. The exceptions below cover programmer errors,
store faults, and the opt-in exception mode of a repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .errors import ErrorBag


class RepositoryError(Exception):
    """Base class for repository-related errors."""


class PreconditionError(RepositoryError, RuntimeError):
    """Raised when an operation is invoked on an entity that cannot take it."""


class ConfigurationError(PreconditionError):
    """Raised when a repository or strategy is constructed with invalid settings."""


class ValidationFailed(RepositoryError):
    """Raised in exception mode when the validator rejects attributes."""

    def __init__(self, errors: "ErrorBag", action: str = "create"):
        self.errors = errors
        self.action = action
        super().__init__(f"Validation failed for {action}: {errors.messages()}")


class NotFoundError(RepositoryError):
    """Raised in exception mode when a single-row fetch finds nothing."""


class StorageError(RepositoryError):
    """Raised when the backing store fails a write (after rollback)."""


__all__ = [
    "RepositoryError",
    "PreconditionError",
    "ConfigurationError",
    "ValidationFailed",
    "NotFoundError",
    "StorageError",
]
