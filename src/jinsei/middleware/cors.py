"""CORS for the browser client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jinsei.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured origins to call the API through the auth gateway.

    The principal header must be listed explicitly: browsers send it on
    every authenticated call and preflight rejects unlisted headers.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id", settings.principal_header],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"],
    )
