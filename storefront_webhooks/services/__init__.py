from .webhook_queue import WebhookQueue
from .webhook_event_handler import WebhookEventHandler

__all__ = [
    "WebhookQueue",
    "WebhookEventHandler",
]
