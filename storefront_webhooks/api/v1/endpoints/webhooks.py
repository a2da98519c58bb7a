from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront_webhooks.api.deps import get_webhook_queue, get_event_handler, get_processor
from storefront_webhooks.core.exceptions import StoreUnavailableError, UnsupportedPayloadError
from storefront_webhooks.core.logging import get_logger
from storefront_webhooks.core.webhook_security import verify_shopify_webhook
from storefront_webhooks.schemas.queue import QueueJobListResponse, QueueJobResponse, QueueStatsResponse
from storefront_webhooks.schemas.webhook import WebhookAcceptedResponse, WebhookLogStatsResponse
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.workers.webhook_processor import WebhookProcessor

router = APIRouter()
logger = get_logger(__name__)


def extract_source_id(payload: Dict[str, Any]) -> str:
    """Upstream object id: the resource id, or the inventory item for inventory levels."""
    for key in ("id", "inventory_item_id"):
        value = payload.get(key)
        if value is not None and value != "":
            return str(value)
    raise UnsupportedPayloadError("Webhook payload has no id or inventory_item_id")


@router.post("/shopify", response_model=WebhookAcceptedResponse)
async def receive_shopify_webhook(
    verified: Dict[str, Any] = Depends(verify_shopify_webhook),
    queue: WebhookQueue = Depends(get_webhook_queue),
):
    """
    Receive a Shopify webhook and queue it for processing.

    **Security Requirements:**
    - X-Shopify-Topic: webhook topic, e.g. `products/create`
    - X-Shopify-Hmac-Sha256: base64 HMAC-SHA256 of the raw body

    A 503 tells Shopify to redeliver later; the job store was unreachable.
    """
    topic = verified["topic"]
    payload = verified["payload"]

    try:
        shopify_id = extract_source_id(payload)
    except UnsupportedPayloadError as e:
        logger.warning(f"Rejected webhook: {e}", topic=topic)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        job = await queue.enqueue(topic, shopify_id, payload)
    except StoreUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook queue unavailable, retry later",
        )

    return WebhookAcceptedResponse(
        message="Webhook queued for processing",
        job_id=job.id,
        topic=topic,
    )


@router.get("/queue/stats", response_model=QueueStatsResponse)
async def get_queue_stats(
    queue: WebhookQueue = Depends(get_webhook_queue),
    processor: Optional[WebhookProcessor] = Depends(get_processor),
):
    """Job counts per status."""
    try:
        stats = await queue.get_queue_stats()
    except Exception as e:
        logger.error(f"Error getting queue stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get queue stats",
        )

    return QueueStatsResponse(
        **stats,
        processor_state=processor.state.value if processor else None,
    )


@router.get("/queue/failed", response_model=QueueJobListResponse)
async def get_failed_jobs(
    limit: Optional[int] = Query(None, ge=1, le=500),
    queue: WebhookQueue = Depends(get_webhook_queue),
):
    """Jobs that exhausted their retries, most recent first. `limit` defaults to WEBHOOK_FAILED_JOBS_LIMIT."""
    try:
        jobs = await queue.get_failed_jobs(limit)
    except Exception as e:
        logger.error(f"Error getting failed jobs: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get failed jobs",
        )

    return QueueJobListResponse(
        jobs=[QueueJobResponse.model_validate(job) for job in jobs],
        count=len(jobs),
    )


@router.get("/queue/stale", response_model=QueueJobListResponse)
async def get_stale_processing_jobs(
    older_than_seconds: int = Query(900, ge=0),
    queue: WebhookQueue = Depends(get_webhook_queue),
):
    """
    Jobs that have been in processing for longer than `older_than_seconds`.

    These are never reclaimed automatically; this listing is for operators.
    """
    try:
        jobs = await queue.get_stale_processing_jobs(older_than_seconds)
    except Exception as e:
        logger.error(f"Error getting stale jobs: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get stale jobs",
        )

    return QueueJobListResponse(
        jobs=[QueueJobResponse.model_validate(job) for job in jobs],
        count=len(jobs),
    )


@router.get("/logs/stats", response_model=WebhookLogStatsResponse)
async def get_webhook_log_stats(
    hours: int = Query(24, ge=1, le=720),
    event_handler: WebhookEventHandler = Depends(get_event_handler),
):
    """Audit log entries per status over the last `hours`."""
    try:
        counts = await event_handler.get_log_stats(hours)
    except Exception as e:
        logger.error(f"Error getting webhook log stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get webhook log stats",
        )

    return WebhookLogStatsResponse(hours=hours, counts=counts, total=sum(counts.values()))
