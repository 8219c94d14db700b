"""Health, readiness, and version endpoints."""

from pathlib import Path

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.config import get_settings
from aiquest.database import get_session
from aiquest.redis_client import get_redis

router = APIRouter()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


def _content_status(root: Path) -> str:
    if not root.is_dir():
        return f"missing: {root}"
    if not (root / "tracks").is_dir():
        return "no tracks directory"
    return "ok"


async def _rate_limiter_status() -> str:
    # Informational: without Redis requests are served unthrottled
    try:
        await get_redis().ping()
    except RuntimeError:
        return "disabled"
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe — returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe.

    The service is ready when the ledger database answers and the content tree
    is mounted. The rate limiter's Redis is reported but does not gate readiness.
    """
    checks = {
        "database": await _database_status(db),
        "content": _content_status(Path(get_settings().content_root)),
    }
    ready = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if ready else "degraded",
        "checks": checks,
        "rate_limiter": await _rate_limiter_status(),
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
