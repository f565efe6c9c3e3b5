"""Service-level exceptions, each carrying the HTTP status it maps to."""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed client input."""

    status_code = 400


class AuthError(ServiceError):
    """Bad credentials, or an invalid / expired / revoked token."""

    status_code = 401


class ConflictError(ServiceError):
    """Username or email already registered."""

    status_code = 409


class UpstreamError(ServiceError):
    """The generative-text backend failed or timed out. Never retried."""

    status_code = 500
