"""Error hierarchy and its problem-details rendering."""

from clubhub.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from clubhub.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    problem_response,
    register_exception_handlers,
)


__all__ = [
    "AppException",
    "BadRequestError",
    "ConflictError",
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "ProblemDetail",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "ValidationError",
    "problem_response",
    "register_exception_handlers",
]
