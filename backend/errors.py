"""Domain errors and their HTTP status mapping."""

from __future__ import annotations


class FinanceManagerError(Exception):
    """Base error carrying a client-safe message and HTTP status."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FinanceManagerError):
    """Raised when a required field is missing or malformed."""

    status_code = 400


class AuthError(FinanceManagerError):
    """Raised when a bearer credential is missing or cannot be verified."""

    status_code = 401


class NotFoundError(FinanceManagerError):
    """Raised when a mutation target does not exist or is not owned by the caller."""

    status_code = 404


class StoreError(FinanceManagerError):
    """Raised when the record store fails; the message never carries store details."""

    status_code = 500


class ConfigurationError(FinanceManagerError):
    """Raised when a required integration is not configured; details stay in the logs."""

    status_code = 500
