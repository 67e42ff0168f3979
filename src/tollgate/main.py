"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan wires up
the optional Redis pool, warms the session cipher (its key derivation is
slow and should happen once, at startup), and runs the expired-session
sweeper.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tollgate import __version__
from tollgate.api import api_router
from tollgate.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "tollgate.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if not settings.api_key:
        logger.warning("tollgate.api_key_missing")

    from tollgate.auth.session_crypto import get_session_cipher
    await asyncio.to_thread(get_session_cipher)

    from tollgate.redis_client import close_redis, init_redis
    try:
        await init_redis()
        logger.info("tollgate.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("tollgate.redis_unavailable", error=str(e))
        # Redis is optional — only rate limiting depends on it

    sweeper = None
    sweep_task = None
    if settings.session_sweep_interval_seconds > 0:
        from tollgate.services.session_sweeper import SessionSweeper
        sweeper = SessionSweeper(
            interval_seconds=settings.session_sweep_interval_seconds
        )
        sweep_task = asyncio.create_task(sweeper.run_loop())

    yield

    logger.info("tollgate.shutdown")

    if sweeper and sweep_task:
        sweeper.stop()
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass

    await close_redis()

    from tollgate.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Tollgate",
        description="User accounts with session and token authentication",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from tollgate.middleware.rate_limit import RateLimitMiddleware
    from tollgate.middleware.request_id import RequestIdMiddleware
    from tollgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-ID"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: tollgate.main:app)
app = create_app()
