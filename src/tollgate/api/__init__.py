"""API route aggregation.

All routers registered here get mounted in main.py.

The API key is applied at the include_router level for the users router.
The auth router applies it per route, because verify-token is open to
any Bearer holder. Health is open.
"""

from fastapi import APIRouter, Depends

from tollgate.api.auth import router as auth_router
from tollgate.api.health import router as health_router
from tollgate.api.users import router as users_router
from tollgate.auth.dependencies import require_api_key

api_router = APIRouter(prefix="/api/v1")

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require X-API-Key
api_router.include_router(
    users_router, tags=["users"], dependencies=[Depends(require_api_key)]
)
