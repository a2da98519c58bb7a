from .webhook_queue_job import WebhookQueueJob
from .webhook_log import WebhookLog
from .product import Product
from .inventory_level import InventoryLevel

__all__ = [
    "WebhookQueueJob",
    "WebhookLog",
    "Product",
    "InventoryLevel",
]
