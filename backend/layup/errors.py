# Overview: Typed domain errors shared by services and the web layer.

"""
Error taxonomy.

Services raise these directly; the Flask error handler registered in
create_app() turns them into JSON bodies with the matching status code.
None of them are retried inside the core: lifecycle gates depend on current
state, so the caller re-reads and decides.
"""

from __future__ import annotations


class LayupError(Exception):
    """Base class for domain errors. Carries an HTTP-ish status and details."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(LayupError):
    """Malformed or missing input."""
    status_code = 400


class UnauthorizedError(LayupError):
    """Absent, invalid or expired credential."""
    status_code = 401


class ForbiddenError(LayupError):
    """Valid credential, but role, ownership or rate limit says no."""
    status_code = 403


class NotFoundError(LayupError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(LayupError):
    """Unique-constraint or lifecycle-stage violation."""
    status_code = 409


class UnavailableError(LayupError):
    """The store could not complete the operation (lock timeout, disconnect)."""
    status_code = 503
