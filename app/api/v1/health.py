"""Health check endpoints.

``probes`` is mounted at the application root for orchestrator liveness and
readiness checks; ``router`` lives under the versioned API prefix.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.settings_cache import SettingsCache

SERVICE_NAME = "tenant-settings-service"
SERVICE_VERSION = "1.0.0"

router = APIRouter()
probes = APIRouter(tags=["Health"])


@router.get("/ping")
async def ping() -> dict:
    """Simple ping endpoint for debugging."""
    return {"ping": "pong"}


@probes.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness: the process is up and serving."""
    return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}


async def _database_ok(request: Request) -> bool:
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        return False
    return True


@probes.get("/ready")
async def readiness_check(request: Request):
    """Readiness: the database must answer; a missing cache only degrades."""
    cache: SettingsCache = request.app.state.settings_cache
    checks = {
        "database": "ok" if await _database_ok(request) else "unavailable",
        "cache": "ok" if await cache.is_available() else "unavailable",
    }
    payload = {
        "status": "ready" if all(v == "ok" for v in checks.values()) else "degraded",
        "checks": checks,
    }
    if checks["database"] != "ok":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)
    return payload
