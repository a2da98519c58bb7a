from .webhook_queue_repository import WebhookQueueRepository
from .webhook_log_repository import WebhookLogRepository
from .product_repository import ProductRepository
from .inventory_level_repository import InventoryLevelRepository

__all__ = [
    "WebhookQueueRepository",
    "WebhookLogRepository",
    "ProductRepository",
    "InventoryLevelRepository",
]
