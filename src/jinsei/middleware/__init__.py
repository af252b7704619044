"""HTTP middleware and exception handlers for the API app."""

from fastapi import FastAPI

from jinsei.config import Settings
from jinsei.middleware.cors import setup_cors
from jinsei.middleware.error_handler import setup_error_handlers
from jinsei.middleware.logging import setup_logging
from jinsei.middleware.rate_limit import RateLimitMiddleware
from jinsei.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette wraps in reverse add order, so CORS ends up outermost, then the
    # request id, then the rate limiter. A 429 still gets CORS headers and an id.
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware, principal_header=settings.principal_header)
    setup_cors(app, settings)
