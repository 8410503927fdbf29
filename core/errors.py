"""
core/errors.py -- Failure taxonomy shared by services and the HTTP layer.

Services and auth dependencies raise these exceptions; they never build
responses themselves. api/main.py registers a single exception handler that
renders every ServiceError as the JSON envelope

    {"message": "...", "code": "...", "errors": [...]}

so clients can parse failures uniformly. status_code is the HTTP status the
handler uses; code is a stable machine-readable string.

Layer rule: core/ is the kernel. No imports from api/, auth/, or profiles/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for all expected, client-facing failures."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, code: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.errors = errors

    def to_dict(self) -> dict:
        body: dict = {"message": self.message, "code": self.code}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class ValidationFailed(ServiceError):
    """Malformed or missing input."""

    status_code = 400
    code = "validation_error"


class Conflict(ServiceError):
    """Duplicate email. Surfaces as 400, not 409, to match the existing clients."""

    status_code = 400
    code = "conflict"


class Unauthenticated(ServiceError):
    """Missing, invalid or expired token, or credentials that do not match."""

    status_code = 401
    code = "unauthorized"


class Forbidden(ServiceError):
    """Authenticated, but the role or a lifecycle guard forbids the action."""

    status_code = 403
    code = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"
