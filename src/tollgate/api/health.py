"""Health check endpoint.

Reports the server as up and probes the database (and Redis, which is
optional and only used for rate limiting).
"""

from fastapi import APIRouter
from sqlalchemy import text

from tollgate import __version__
from tollgate.db.engine import engine

router = APIRouter()


@router.get("/health")
async def health_check():
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"

    try:
        from tollgate.redis_client import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {type(e).__name__}"

    # Redis being down degrades rate limiting only
    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
