"""Request id and acting profile in the log context, plus one access log line per request."""

import time
import uuid
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind X-Request-Id and the principal header value to every log event of the request.

    The request id is taken from the caller when present and echoed back.
    """

    def __init__(self, app: Any, principal_header: str = "X-Profile-Id") -> None:  # noqa: ANN401
        super().__init__(app)
        self.principal_header = principal_header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        profile_id = request.headers.get(self.principal_header)
        if profile_id:
            structlog.contextvars.bind_contextvars(profile_id=profile_id)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        logger.info(
            "request_finished",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response
