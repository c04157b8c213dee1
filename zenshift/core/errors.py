"""Application error taxonomy.

Services raise these; the exception handlers registered in ``zenshift.app``
turn them into JSON responses with the matching status code.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class InvalidPlan(ValidationError):
    pass


class AuthenticationError(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class InvalidSignature(AppError):
    """Webhook payload could not be authenticated."""

    status_code = 400


class ConfigurationError(AppError):
    status_code = 500


class UpstreamError(AppError):
    """A call to the billing gateway, an OAuth provider or the store failed."""

    status_code = 500


class PayloadTooLarge(AppError):
    status_code = 413


class TooManyRequests(AppError):
    status_code = 429
