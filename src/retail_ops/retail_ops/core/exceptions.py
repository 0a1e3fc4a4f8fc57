from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced product or assignment does not exist."""


class PersistenceError(DomainError):
    """Raised when the underlying store call fails.

    The store's diagnostic message is kept in ``str(exc)``; the original
    driver exception (if any) is available as ``cause``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
