"""Problem details (RFC 7807) rendering for every error the API returns.

Whatever fails, whether a signup step applied out of order, a malformed
request body, a subdomain that lost a uniqueness race or a plain bug,
the client receives ``application/problem+json`` with a ``type`` URI
built from the error code and the request's trace id.
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError

from clubhub.config import settings
from clubhub.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

PROBLEM_MEDIA_TYPE = "application/problem+json"


class FieldError(BaseModel):
    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """Body of an error response.

    ``errors`` is only present for validation failures. Context carried by
    an ``AppException`` is appended as extra members.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None


def problem_response(
    request: Request,
    status_code: int,
    error_code: str,
    detail: str,
    *,
    title: str | None = None,
    errors: list[FieldError] | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the JSON response for one problem occurrence."""
    body = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)

    # Standard members win over context with the same name
    for key, value in (extra or {}).items():
        body.setdefault(key, value)

    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_MEDIA_TYPE)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    level = "error" if exc.status_code >= 500 else "warning"
    getattr(logger, level)(
        "app_exception",
        error_code=exc.error_code,
        status_code=exc.status_code,
        message=exc.message,
        path=request.url.path,
        details=exc.details,
    )
    return problem_response(
        request, exc.status_code, exc.error_code, exc.message, extra=exc.details
    )


def _field_path(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "unknown"


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report each invalid request field, e.g. ``subdomain`` or ``password``."""
    errors = [
        FieldError(
            field=_field_path(tuple(error.get("loc", ()))),
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, error_count=len(errors))

    return problem_response(
        request,
        422,
        "validation_error",
        "Request validation failed",
        title="Validation Error",
        errors=errors,
    )


async def integrity_exception_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """A unique constraint fired after the service-level check passed.

    Two signups claiming the same subdomain or email at once both pass the
    read-side check; the database rejects the second write.
    """
    logger.warning("integrity_conflict", path=request.url.path, error=str(exc.orig))
    return problem_response(
        request,
        status.HTTP_409_CONFLICT,
        "conflict",
        "The request conflicts with existing data",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        exc_type=type(exc).__name__,
    )
    return problem_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
        title="Internal Server Error",
    )


_HANDLERS: dict[type[Exception], Any] = {
    AppException: app_exception_handler,
    RequestValidationError: validation_exception_handler,
    IntegrityError: integrity_exception_handler,
    Exception: generic_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, handler in _HANDLERS.items():
        app.add_exception_handler(exc_class, cast("ExceptionHandler", handler))
