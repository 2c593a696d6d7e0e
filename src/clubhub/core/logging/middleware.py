"""Request tracing and access logging.

Every request gets an id, taken from ``X-Request-ID`` when the caller
(or Stripe's webhook relay behind a proxy) sends one. The id is bound
into the structlog context, so a log line emitted deep inside the
activation path can be tied back to the webhook delivery that caused it.
"""

import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

QUIET_PATHS = ("/health/live", "/health/ready", "/docs", "/redoc", "/openapi.json")


def get_client_ip(request: Request) -> str | None:
    """First hop of ``X-Forwarded-For``, then ``X-Real-IP``, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    candidates = [
        forwarded.split(",")[0].strip(),
        request.headers.get("X-Real-IP", ""),
        request.client.host if request.client else "",
    ]
    return next((ip for ip in candidates if ip), None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        # The error handlers report it as the problem's trace_id
        request.state.request_id = request.state.trace_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            finally:
                # Bound by the auth dependency once the caller is known
                structlog.contextvars.unbind_contextvars("identity_user_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """A start line and a completion line per request; completion is leveled by status."""

    def __init__(self, app: Any, quiet_paths: tuple[str, ...] = QUIET_PATHS) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.startswith(self.quiet_paths):
            return await call_next(request)

        log = logger.bind(method=request.method, path=request.url.path)
        log.info("request_started", client_ip=get_client_ip(request))
        started = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            response = await call_next(request)
        except Exception:
            log.exception("request_failed", duration_ms=elapsed_ms())
            raise

        identity_user_id = getattr(request.state, "identity_user_id", None)
        if identity_user_id:
            log = log.bind(identity_user_id=str(identity_user_id))

        if response.status_code >= 500:
            emit = log.error
        elif response.status_code >= 400:
            emit = log.warning
        else:
            emit = log.info
        emit("request_completed", status_code=response.status_code, duration_ms=elapsed_ms())
        return response
