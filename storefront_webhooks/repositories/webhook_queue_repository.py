from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_webhooks.models.webhook_queue_job import (
    WebhookQueueJob,
    JOB_PENDING,
    JOB_PROCESSING,
    JOB_COMPLETED,
    JOB_FAILED,
)
from .base_repository import BaseRepository


class WebhookQueueRepository(BaseRepository[WebhookQueueJob]):
    """
    Statements over the webhook_queue table.

    Every state change is one UPDATE guarded on the current status, so a
    transition is applied at most once no matter how many callers race.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(WebhookQueueJob, session)

    async def create_job(self, topic: str, shopify_id: str, payload: Dict[str, Any], max_retries: int) -> WebhookQueueJob:
        return await self.create({
            "topic": topic,
            "shopify_id": shopify_id,
            "payload": payload,
            "status": JOB_PENDING,
            "retry_count": 0,
            "max_retries": max_retries,
        })

    async def claim_next(self) -> Optional[WebhookQueueJob]:
        """
        Claim the oldest pending job in a single statement.

        The inner SELECT takes a row lock with SKIP LOCKED, so a concurrent
        claimant moves past the row instead of waiting for it.
        """
        oldest_pending = (
            select(WebhookQueueJob.id)
            .where(WebhookQueueJob.status == JOB_PENDING)
            .order_by(WebhookQueueJob.created_at.asc(), WebhookQueueJob.id.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(WebhookQueueJob)
            .where(WebhookQueueJob.id == oldest_pending)
            .where(WebhookQueueJob.status == JOB_PENDING)
            .values(status=JOB_PROCESSING, updated_at=func.now())
            .returning(WebhookQueueJob)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def complete(self, job_id: int) -> bool:
        stmt = (
            update(WebhookQueueJob)
            .where(WebhookQueueJob.id == job_id, WebhookQueueJob.status == JOB_PROCESSING)
            .values(status=JOB_COMPLETED, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def fail(self, job_id: int, error_message: str) -> bool:
        stmt = (
            update(WebhookQueueJob)
            .where(WebhookQueueJob.id == job_id, WebhookQueueJob.status == JOB_PROCESSING)
            .values(status=JOB_FAILED, error_message=error_message, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def requeue(self, job_id: int) -> Optional[WebhookQueueJob]:
        """Return a processing job to pending while it has retries left."""
        stmt = (
            update(WebhookQueueJob)
            .where(
                WebhookQueueJob.id == job_id,
                WebhookQueueJob.status == JOB_PROCESSING,
                WebhookQueueJob.retry_count < WebhookQueueJob.max_retries,
            )
            .values(
                status=JOB_PENDING,
                retry_count=WebhookQueueJob.retry_count + 1,
                updated_at=func.now(),
            )
            .returning(WebhookQueueJob)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_failed(self, limit: int) -> List[WebhookQueueJob]:
        query = (
            select(WebhookQueueJob)
            .where(WebhookQueueJob.status == JOB_FAILED)
            .order_by(WebhookQueueJob.updated_at.desc(), WebhookQueueJob.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_processing_since(self, cutoff: datetime) -> List[WebhookQueueJob]:
        query = (
            select(WebhookQueueJob)
            .where(WebhookQueueJob.status == JOB_PROCESSING, WebhookQueueJob.updated_at <= cutoff)
            .order_by(WebhookQueueJob.updated_at.asc(), WebhookQueueJob.id.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self) -> Dict[str, int]:
        query = select(WebhookQueueJob.status, func.count()).group_by(WebhookQueueJob.status)
        result = await self.session.execute(query)
        return {status: count for status, count in result.all()}
