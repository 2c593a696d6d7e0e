"""Error types raised by services and dependencies.

Each class fixes an HTTP status and a machine-readable ``error_code``.
The handlers in ``handlers.py`` render them as problem details, with the
entries of ``details`` appearing as extra members of the body, so a
client that gets ``invalid_signup_state`` also sees ``expected`` and
``actual`` next to ``detail``.
"""

from typing import Any


class AppException(Exception):
    """Root of the error hierarchy.

    Keyword arguments other than the three named ones are folded into
    ``details``; ``None`` values are dropped so optional context never
    shows up as ``null`` in a response.
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        **context: Any,
    ) -> None:
        self.message = message or type(self).message
        self.error_code = error_code or type(self).error_code
        self.details = {**(details or {})}
        self.details.update({key: value for key, value in context.items() if value is not None})
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code!r}, {self.message!r})"


# 4xx


class BadRequestError(AppException):
    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class UnauthorizedError(AppException):
    """No credentials, or credentials that do not check out."""

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Authenticated, but the identity's tenant role is not enough."""

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class NotFoundError(AppException):
    """Unknown signup session, tenant, plan or membership.

    ``resource`` and ``resource_id`` are passed as context, e.g.
    ``NotFoundError("Tenant not found", resource="tenant", resource_id=str(tid))``.
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404


class ConflictError(AppException):
    """The request collides with current state: a taken subdomain or email,
    or a signup step applied out of order."""

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Business-rule validation failure; ``errors`` lists the offending fields."""

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422


# 5xx


class ServiceUnavailableError(AppException):
    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503
