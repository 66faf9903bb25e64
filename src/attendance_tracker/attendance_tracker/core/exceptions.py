from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid, before any state change."""


class NotFoundError(DomainError):
    """Raised when an employee or attendance record is unknown."""


class DuplicateDayError(DomainError):
    """Raised when an employee already has an attendance record for the day.

    `existing` holds the committed record when it could be loaded, so callers
    can reconcile with what the other request stored.
    """

    def __init__(self, message: str, *, existing: Optional[Any] = None):
        super().__init__(message)
        self.existing = existing


class StorageError(DomainError):
    """Raised when the datastore fails to connect, execute or commit.

    The surrounding transaction has been rolled back when this is raised.
    """
