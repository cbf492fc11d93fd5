"""
errors.py

Error taxonomy shared by services and routers. Each error carries a stable
code that the presentation layer maps to a message, and the HTTP status the
API answers with.
"""
from typing import Optional


class ServiceError(Exception):
    """Base class for expected, classified failures."""

    code = "SERVICE_ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class InvalidArgument(ServiceError):
    """Malformed or out-of-range input (bad weekday, negative slot order...)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFound(ServiceError):
    """Referenced row is missing or belongs to another household/profile."""

    code = "NOT_FOUND"
    status_code = 404


class DuplicateEntry(ServiceError):
    code = "DUPLICATE_ENTRY"
    status_code = 409


class UpstreamUnavailable(ServiceError):
    """TMDB, JustWatch or the LLM failed, timed out or is not configured."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502

    def __init__(self, message: str, service: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.service = service
        self.status = status
