"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from aiquest.config import get_settings
from aiquest.content.router import router as content_router
from aiquest.database import close_db, create_schema, init_db
from aiquest.health.router import router as health_router
from aiquest.lessons.router import router as lessons_router
from aiquest.middleware import setup_middleware
from aiquest.progression.router import router as progression_router
from aiquest.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.create_schema:
        await create_schema()
        logger.info("schema_created")
    await init_redis(settings.redis_url)
    logger.info(
        "api_started",
        environment=settings.environment,
        content_root=settings.content_root,
        rate_limiting=bool(settings.redis_url),
    )

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="AI Quest API",
        description="Lesson content and learner progression for the AI Quest learning platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(content_router)
    app.include_router(lessons_router)
    app.include_router(progression_router)

    return app


app = create_app()
