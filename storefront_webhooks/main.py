from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse

from storefront_webhooks.core.config import settings
from storefront_webhooks.core.database import AsyncSessionLocal, db_manager
from storefront_webhooks.core.exceptions import StoreUnavailableError
from storefront_webhooks.core.logging import setup_logging, get_logger
from storefront_webhooks.api.v1.router import api_router
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler
from storefront_webhooks.workers.webhook_processor import WebhookProcessor


# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the in-process webhook processor and stop it on shutdown."""
    app.state.processor = None
    if settings.WEBHOOK_PROCESSOR_ENABLED:
        processor = WebhookProcessor(
            WebhookQueue(AsyncSessionLocal),
            WebhookEventHandler(AsyncSessionLocal),
            interval_ms=settings.WEBHOOK_PROCESSOR_INTERVAL_MS,
        )
        processor.start()
        app.state.processor = processor
    logger.info("Storefront Webhook Service startup completed")

    yield

    try:
        if app.state.processor is not None:
            await app.state.processor.stop()
        await db_manager.close_connections()
        logger.info("Storefront Webhook Service shutdown completed")
    except Exception as e:
        logger.error(f"Storefront Webhook Service shutdown failed: {e}")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    **Storefront Webhook Service**

    Receives Shopify webhooks, stores them in a durable queue and applies
    them to the local product, inventory and audit tables.

    - `POST /v1/webhooks/shopify` - signed webhook ingress
    - `GET /v1/webhooks/queue/stats` - job counts per status
    - `GET /v1/webhooks/queue/failed` - jobs that exhausted their retries
    """,
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/v1")


@app.get("/")
async def root(request: Request):
    processor = getattr(request.app.state, "processor", None)
    return {
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "processor": processor.state.value if processor else "disabled",
        "webhook_url": "/v1/webhooks/shopify",
        "health_check": "/v1/health",
    }


def error_response(code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=code, content={"success": False, "error": error, **extra})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.warning("Job store unavailable", path=request.url.path, error=str(exc))
    return error_response(503, "Webhook queue unavailable, retry later")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, exc.detail, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", path=request.url.path)
    details = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return error_response(500, "Internal server error", details=details)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront_webhooks.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
