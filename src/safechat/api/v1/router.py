"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from safechat.api.v1.endpoints.health import router as health_router
from safechat.api.v1.endpoints.safety import router as safety_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    safety_router,
    prefix="/safety",
    tags=["Safety"],
)
