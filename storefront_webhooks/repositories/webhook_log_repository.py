from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_webhooks.models.webhook_log import WebhookLog
from .base_repository import BaseRepository


class WebhookLogRepository(BaseRepository[WebhookLog]):
    """Repository for the append-only webhook audit log."""

    def __init__(self, session: AsyncSession):
        super().__init__(WebhookLog, session)

    async def log_webhook(
        self,
        webhook_topic: str,
        shopify_id: str,
        status: str,
        payload: Dict[str, Any],
        retry_count: int = 0,
        error_message: Optional[str] = None,
    ) -> WebhookLog:
        """Append an audit entry."""
        return await self.create({
            "webhook_topic": webhook_topic,
            "shopify_id": shopify_id,
            "status": status,
            "payload": payload,
            "error_message": error_message,
            "retry_count": retry_count,
        })

    async def get_by_shopify_id(self, shopify_id: str) -> List[WebhookLog]:
        query = (
            select(WebhookLog)
            .where(WebhookLog.shopify_id == shopify_id)
            .order_by(WebhookLog.created_at.asc(), WebhookLog.id.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_recent_stats(self, hours: int = 24) -> Dict[str, int]:
        """Count log entries per status over the last `hours`."""
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        query = (
            select(WebhookLog.status, func.count())
            .where(WebhookLog.created_at >= since)
            .group_by(WebhookLog.status)
        )
        result = await self.session.execute(query)
        return {status: count for status, count in result.all()}
