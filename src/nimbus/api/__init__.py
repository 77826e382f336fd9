"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects every route in the weather
router without touching individual handlers. The auth router is open.
FastAPI caches dependencies per request, so the guard still runs once
even though the weather handler also asks for the current user.
"""

from fastapi import APIRouter, Depends

from nimbus.api.auth import router as auth_router
from nimbus.api.health import router as health_router
from nimbus.api.weather import router as weather_router
from nimbus.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid bearer token
api_router.include_router(weather_router, tags=["weather"], dependencies=_auth)

__all__ = ["api_router", "health_router"]
