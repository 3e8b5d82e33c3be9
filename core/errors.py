"""
Application error taxonomy.

Each error carries the HTTP status the JSON error handlers in ``main`` respond
with, so services can raise them without knowing about FastAPI.
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(AppError):
    """Requested tenant or entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class NotActivated(AppError):
    """Entity exists but the requested channel or feature flag is off."""
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailed(AppError):
    """Caller-supplied input violates a precondition."""
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamFailure(AppError):
    """The database or a third-party collaborator failed or was unreachable."""
    status_code = status.HTTP_502_BAD_GATEWAY


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class QuotaExceeded(AppError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
