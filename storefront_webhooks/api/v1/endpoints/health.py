from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from storefront_webhooks.api.deps import get_processor
from storefront_webhooks.core.database import get_async_session
from storefront_webhooks.core.config import settings
from storefront_webhooks.workers.webhook_processor import WebhookProcessor

router = APIRouter()


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "storefront-webhooks",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }


@router.get("/detailed")
async def detailed_health_check(
    session: AsyncSession = Depends(get_async_session),
    processor: Optional[WebhookProcessor] = Depends(get_processor),
):
    """Detailed health check including the database and the processor."""
    health_status = {
        "status": "healthy",
        "service": "storefront-webhooks",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "checks": {}
    }

    # Database check
    try:
        await session.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {"status": "healthy", "message": "Database connection OK"}
    except Exception as e:
        health_status["checks"]["database"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "unhealthy"

    # Processor check
    if processor is None:
        health_status["checks"]["processor"] = {"status": "disabled"}
    else:
        health_status["checks"]["processor"] = {
            "status": processor.state.value,
            "interval_ms": processor.interval_ms,
        }

    return health_status
