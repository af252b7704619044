"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jinsei.achievements.router import router as achievements_router
from jinsei.config import get_settings
from jinsei.database import close_db, init_db
from jinsei.health.router import router as health_router
from jinsei.middleware import setup_middleware
from jinsei.profiles.router import router as profiles_router
from jinsei.redis_client import close_redis, init_redis
from jinsei.skilltree.router import router as skilltree_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Jinsei Index API",
        description="Backend API for Jinsei Index: track life skills and level them up by completing challenges",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(profiles_router)
    app.include_router(skilltree_router)
    app.include_router(achievements_router)

    return app


app = create_app()
