"""
affiliatehub - affiliate commission engine

FastAPI application exposing:
- Conversion and coupon-usage webhooks
- Referral link tracking
- Health checks
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from affiliatehub import __version__
from affiliatehub.api import api_router
from affiliatehub.config import settings
from affiliatehub.db import engine

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Schema is owned by Alembic; startup only logs.
    Shutdown disposes the engine.
    """
    logger.info("Starting affiliatehub...")
    if not settings.webhook_secret:
        logger.warning("WEBHOOK_SECRET is not set, webhook signatures are not verified")

    yield

    logger.info("Shutting down affiliatehub...")
    await engine.dispose()


app = FastAPI(
    title="affiliatehub",
    description="Affiliate commission engine",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints


# --- Error responses ---
# Webhook clients read failures from an "error" key

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Field-level validation failures under the same envelope."""
    details = [
        {
            "field": ".".join(str(loc) for loc in err["loc"][1:]) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request data", "details": details},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "affiliatehub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
