"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portal.achievements.router import router as achievements_router
from portal.auth.router import router as auth_router
from portal.config import get_settings
from portal.database import close_db, init_db
from portal.events.router import router as events_router
from portal.health.router import router as health_router
from portal.middleware import setup_middleware
from portal.redis_client import close_redis, init_redis
from portal.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Student Portal API",
        description="Points, levels, events and achievements for campus students",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(events_router)
    app.include_router(achievements_router)

    return app


app = create_app()
