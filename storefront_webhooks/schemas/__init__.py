from .common import BaseResponse
from .webhook import (
    ShopifyOrderPayload,
    ShopifyProductPayload,
    ShopifyInventoryLevelPayload,
    WebhookAcceptedResponse,
    WebhookLogStatsResponse,
    parse_tags,
)
from .queue import QueueJobResponse, QueueJobListResponse, QueueStatsResponse

__all__ = [
    "BaseResponse",
    "ShopifyOrderPayload",
    "ShopifyProductPayload",
    "ShopifyInventoryLevelPayload",
    "WebhookAcceptedResponse",
    "WebhookLogStatsResponse",
    "parse_tags",
    "QueueJobResponse",
    "QueueJobListResponse",
    "QueueStatsResponse",
]
