"""API router aggregation."""

from fastapi import APIRouter

from affiliatehub.api.health import router as health_router
from affiliatehub.api.tracking import router as tracking_router
from affiliatehub.api.webhooks import router as webhooks_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(tracking_router)
api_router.include_router(webhooks_router)

__all__ = ["api_router"]
