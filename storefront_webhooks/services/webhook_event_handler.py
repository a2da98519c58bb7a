from typing import Awaitable, Callable, Dict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront_webhooks.models.webhook_queue_job import WebhookQueueJob
from storefront_webhooks.repositories import (
    WebhookLogRepository,
    ProductRepository,
    InventoryLevelRepository,
)
from storefront_webhooks.schemas.webhook import (
    ShopifyOrderPayload,
    ShopifyProductPayload,
    ShopifyInventoryLevelPayload,
)
from .base_service import BaseService


TopicHandler = Callable[[WebhookQueueJob], Awaitable[None]]


class WebhookEventHandler(BaseService):
    """
    Applies a queued Shopify webhook to the local store.

    One method per topic. Any exception raised here is a handler error:
    the processor turns it into a retry or a terminal failure.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(session_factory)
        self.handlers: Dict[str, TopicHandler] = {
            "orders/create": self.handle_order_create,
            "orders/updated": self.handle_order_update,
            "products/create": self.handle_product_create,
            "products/update": self.handle_product_update,
            "inventory_levels/update": self.handle_inventory_update,
        }

    @property
    def topics(self) -> list[str]:
        return sorted(self.handlers)

    def supports(self, topic: str) -> bool:
        return topic in self.handlers

    async def handle(self, job: WebhookQueueJob) -> bool:
        """
        Dispatch a job to its topic handler.

        Returns False for a topic with no handler; that is not an error so
        new upstream topics do not fill the failed list.
        """
        handler = self.handlers.get(job.topic)
        if handler is None:
            self.logger.warning("Unknown webhook topic, ignoring", topic=job.topic, job_id=job.id)
            return False

        await handler(job)
        return True

    async def handle_order_create(self, job: WebhookQueueJob):
        order = ShopifyOrderPayload.model_validate(job.payload)
        self.logger.info("Processing new order", order_id=order.id, job_id=job.id)
        await self._log_success("orders/create", order.id, job)

    async def handle_order_update(self, job: WebhookQueueJob):
        order = ShopifyOrderPayload.model_validate(job.payload)
        self.logger.info("Processing order update", order_id=order.id, job_id=job.id)
        await self._log_success("orders/updated", order.id, job)

    async def handle_product_create(self, job: WebhookQueueJob):
        product = ShopifyProductPayload.model_validate(job.payload)
        self.logger.info("Processing new product", product_id=product.id, job_id=job.id)

        async with self.session_scope() as session:
            await ProductRepository(session).upsert_product(
                shopify_product_id=product.id,
                title=product.title,
                handle=product.handle,
                description=product.body_html or "",
                product_type=product.product_type or "",
                vendor=product.vendor or "",
                status=product.status,
                tags=product.tags,
                created_at=product.created_at,
            )
            await WebhookLogRepository(session).log_webhook(
                webhook_topic="products/create",
                shopify_id=product.id,
                status="success",
                payload=job.payload,
                retry_count=job.retry_count,
            )

    async def handle_product_update(self, job: WebhookQueueJob):
        product = ShopifyProductPayload.model_validate(job.payload)
        self.logger.info("Processing product update", product_id=product.id, job_id=job.id)
        await self._log_success("products/update", product.id, job)

    async def handle_inventory_update(self, job: WebhookQueueJob):
        level = ShopifyInventoryLevelPayload.model_validate(job.payload)
        self.logger.info(
            "Processing inventory update",
            inventory_item_id=level.inventory_item_id,
            location_id=level.location_id,
            available=level.available,
            job_id=job.id,
        )

        async with self.session_scope() as session:
            await InventoryLevelRepository(session).upsert_level(
                level.inventory_item_id,
                level.location_id,
                level.available,
            )
            await WebhookLogRepository(session).log_webhook(
                webhook_topic="inventory_levels/update",
                shopify_id=level.inventory_item_id,
                status="success",
                payload=job.payload,
                retry_count=job.retry_count,
            )

    async def get_log_stats(self, hours: int = 24) -> Dict[str, int]:
        """Audit log entries per status written in the last `hours`."""
        async with self.session_scope(read_only=True) as session:
            return await WebhookLogRepository(session).get_recent_stats(hours)

    async def _log_success(self, topic: str, shopify_id: str, job: WebhookQueueJob):
        async with self.session_scope() as session:
            await WebhookLogRepository(session).log_webhook(
                webhook_topic=topic,
                shopify_id=shopify_id,
                status="success",
                payload=job.payload,
                retry_count=job.retry_count,
            )
