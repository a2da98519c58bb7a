from typing import Optional
from fastapi import Request

from storefront_webhooks.core.database import AsyncSessionLocal
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler
from storefront_webhooks.workers.webhook_processor import WebhookProcessor


def get_webhook_queue() -> WebhookQueue:
    return WebhookQueue(AsyncSessionLocal)


def get_event_handler() -> WebhookEventHandler:
    return WebhookEventHandler(AsyncSessionLocal)


def get_processor(request: Request) -> Optional[WebhookProcessor]:
    return getattr(request.app.state, "processor", None)
