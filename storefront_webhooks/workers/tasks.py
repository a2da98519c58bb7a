import asyncio

from storefront_webhooks.core.config import settings
from storefront_webhooks.core.database import create_engine_from_url, create_session_factory
from storefront_webhooks.core.logging import get_logger
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler
from .celery_app import celery_app
from .webhook_processor import WebhookProcessor, JobOutcome

logger = get_logger(__name__)


async def run_single_tick(database_url: str) -> JobOutcome:
    """Process at most one queued webhook with a short-lived engine."""
    # asyncio.run() gives every task a fresh loop, so pooled connections
    # cannot be shared between runs
    engine = create_engine_from_url(database_url)
    try:
        session_factory = create_session_factory(engine)
        processor = WebhookProcessor(WebhookQueue(session_factory), WebhookEventHandler(session_factory))
        return await processor.process_next_job()
    finally:
        await engine.dispose()


@celery_app.task(name="storefront_webhooks.workers.tasks.process_webhook_queue")
def process_webhook_queue() -> str:
    """Beat-scheduled tick of the webhook queue."""
    outcome = asyncio.run(run_single_tick(settings.DATABASE_URL))
    if outcome != JobOutcome.IDLE:
        logger.info("Webhook queue tick finished", outcome=outcome.value)
    return outcome.value
