"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub import __version__
from affiliatehub.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Process is up; says nothing about the database."""
    return {"status": "healthy", "service": "affiliatehub", "version": __version__}


@router.get("/ready")
async def readiness_check(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Readiness check with database connectivity.

    Webhook deliveries need the database, so an unreachable database
    answers 503 and the load balancer keeps traffic away.
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = 503
        return {"status": "not_ready", "database": "unavailable"}

    return {"status": "ready", "database": "connected"}


@router.get("/live")
async def liveness_check():
    """Liveness check used by the orchestrator to decide on restarts."""
    return {"status": "alive"}
