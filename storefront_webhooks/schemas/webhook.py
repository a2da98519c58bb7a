from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from .common import BaseResponse


def _as_string_id(value: Any) -> Any:
    # Shopify sends numeric ids in REST payloads and gid:// strings elsewhere
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


def parse_tags(value: Any) -> List[str]:
    """Split a comma separated Shopify tag string into trimmed tags."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise ValueError("tags must be a comma separated string or a list")
    return [tag.strip() for tag in items if tag.strip()]


class ShopifyOrderPayload(BaseModel):
    """Fields read from orders/create and orders/updated webhooks."""

    id: str = Field(..., description="Shopify order ID")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return _as_string_id(value)


class ShopifyProductPayload(BaseModel):
    """Fields read from products/* webhooks."""

    id: str = Field(..., description="Shopify product ID")
    title: str = Field(..., description="Product title")
    handle: str = Field(default="", description="URL handle")
    body_html: Optional[str] = Field(default=None, description="Product description HTML")
    product_type: Optional[str] = None
    vendor: Optional[str] = None
    status: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return _as_string_id(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> List[str]:
        return parse_tags(value)


class ShopifyInventoryLevelPayload(BaseModel):
    """Fields read from inventory_levels/update webhooks."""

    inventory_item_id: str = Field(..., description="Shopify inventory item ID")
    location_id: str = Field(..., description="Shopify location ID")
    available: int = Field(..., description="Available quantity at the location")

    @field_validator("inventory_item_id", "location_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return _as_string_id(value)


class WebhookAcceptedResponse(BaseResponse):
    """Response returned to Shopify once a webhook is queued."""

    status: str = Field(default="queued", description="Ingestion status")
    job_id: int = Field(..., description="Queue job ID")
    topic: str = Field(..., description="Webhook topic")


class WebhookLogStatsResponse(BaseResponse):
    """Audit log entries per status over a recent window."""

    hours: int = Field(..., description="Window size in hours")
    counts: Dict[str, int] = Field(default_factory=dict, description="Entries per status")
    total: int = 0
