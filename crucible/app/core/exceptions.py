"""
Typed exceptions for the Crucible API.

Each class carries the HTTP status the exception handlers in main.py
answer with. Services raise them; they never build responses themselves.
"""

from typing import Optional


class CrucibleError(Exception):
    """Base exception for the service"""
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(CrucibleError):
    """Missing or malformed field, unknown discipline, bad wallet, bad score."""
    status_code = 400


class ConflictError(CrucibleError):
    """
    A well-formed request that breaks a business rule.

    Examples:
    - Second entry from the same author
    - Tournament no longer accepting entries
    - Discipline does not match the tournament restriction
    """
    status_code = 400


class UnauthorizedError(CrucibleError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, self.status_code)


class ForbiddenError(CrucibleError):
    """Raised when a non-participant tries to rate tournament entries."""
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, self.status_code)


class NotFoundError(CrucibleError):
    status_code = 404


class StorageError(CrucibleError):
    """A document could not be read or written."""
    status_code = 500
