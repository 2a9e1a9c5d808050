"""
Error taxonomy for the monthly credit run.

Every error raised here aborts the whole request and is rendered by the
handler registered in main.py as ``{"error": <message>}`` with the error's
status code. Per-subscriber problems never use these classes; they are
recorded as skipped/failed outcomes in the report instead.
"""

from typing import Optional


class CreditJobError(Exception):
    """Base class for errors that abort a credit run before any mutation."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(CreditJobError):
    """Authorization header missing or not in "Bearer <key>" form."""

    status_code = 401


class Forbidden(CreditJobError):
    """Bearer key present but does not match the configured secret."""

    status_code = 403


class FetchError(CreditJobError):
    """Billing store could not be read (subscribers or pricing plans)."""

    status_code = 500


class ConfigurationError(CreditJobError):
    status_code = 500


class StoreNotConfigured(CreditJobError):
    status_code = 503
