from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront_webhooks.core.config import settings
from storefront_webhooks.core.exceptions import StoreUnavailableError
from storefront_webhooks.models.webhook_queue_job import WebhookQueueJob, JOB_STATUSES
from storefront_webhooks.repositories.webhook_queue_repository import WebhookQueueRepository
from .base_service import BaseService


# Errors that mean the store could not be reached, as opposed to a bad row
STORE_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError, DisconnectionError, OSError, TimeoutError)


class WebhookQueue(BaseService):
    """
    Durable webhook queue on top of the webhook_queue table.

    This is the only writer of that table. Each call runs one statement in
    its own transaction; the claim in dequeue() is what keeps concurrent
    processors from picking up the same job.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], default_max_retries: Optional[int] = None):
        super().__init__(session_factory)
        if default_max_retries is None:
            default_max_retries = settings.WEBHOOK_DEFAULT_MAX_RETRIES
        if default_max_retries < 1:
            raise ValueError("default_max_retries must be a positive integer")
        self.default_max_retries = default_max_retries

    async def enqueue(
        self,
        topic: str,
        shopify_id: str,
        payload: Dict[str, Any],
        max_retries: Optional[int] = None,
    ) -> WebhookQueueJob:
        """
        Queue a webhook for processing.

        Raises:
            ValueError: if max_retries is not positive
            StoreUnavailableError: if the store cannot be reached
        """
        max_retries = self.default_max_retries if max_retries is None else max_retries
        if max_retries < 1:
            raise ValueError("max_retries must be a positive integer")

        try:
            async with self.session_scope() as session:
                job = await WebhookQueueRepository(session).create_job(topic, shopify_id, payload, max_retries)
        except STORE_CONNECTIVITY_ERRORS as e:
            self.logger.error(f"Job store unavailable while enqueuing webhook: {e}", topic=topic, shopify_id=shopify_id)
            raise StoreUnavailableError(str(e)) from e

        self.logger.info("Webhook job enqueued", job_id=job.id, topic=topic, shopify_id=shopify_id)
        return job

    async def dequeue(self) -> Optional[WebhookQueueJob]:
        """Claim the oldest pending job, or return None if there is none."""
        async with self.session_scope() as session:
            job = await WebhookQueueRepository(session).claim_next()

        if job:
            self.logger.debug("Webhook job claimed", job_id=job.id, topic=job.topic)
        return job

    async def mark_completed(self, job_id: int) -> bool:
        """Mark a claimed job completed. A repeated call changes nothing."""
        async with self.session_scope() as session:
            updated = await WebhookQueueRepository(session).complete(job_id)

        if not updated:
            self.logger.debug("Job not in processing state, completion skipped", job_id=job_id)
        return updated

    async def mark_failed(self, job_id: int, error_message: str) -> bool:
        """Move a claimed job to the terminal failed state."""
        async with self.session_scope() as session:
            updated = await WebhookQueueRepository(session).fail(job_id, error_message)

        if updated:
            self.logger.warning("Webhook job failed permanently", job_id=job_id, error=error_message)
        return updated

    async def retry_job(self, job_id: int) -> Optional[WebhookQueueJob]:
        """
        Put a claimed job back to pending with retry_count + 1.

        Returns None without changing anything once retry_count has reached
        max_retries; the caller should mark the job failed instead.
        """
        async with self.session_scope() as session:
            job = await WebhookQueueRepository(session).requeue(job_id)

        if job:
            self.logger.info("Webhook job requeued", job_id=job_id, retry_count=job.retry_count, max_retries=job.max_retries)
        return job

    async def get_job(self, job_id: int) -> Optional[WebhookQueueJob]:
        async with self.session_scope(read_only=True) as session:
            return await WebhookQueueRepository(session).get_by_id(job_id)

    async def get_failed_jobs(self, limit: Optional[int] = None) -> List[WebhookQueueJob]:
        """Most recently failed jobs first, up to `limit` (WEBHOOK_FAILED_JOBS_LIMIT by default)."""
        if limit is None:
            limit = settings.WEBHOOK_FAILED_JOBS_LIMIT
        async with self.session_scope(read_only=True) as session:
            return await WebhookQueueRepository(session).get_failed(limit)

    async def get_stale_processing_jobs(self, older_than_seconds: int) -> List[WebhookQueueJob]:
        """
        List jobs that have sat in processing for at least `older_than_seconds`.

        Read only. Nothing in this service reclaims such jobs.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
        async with self.session_scope(read_only=True) as session:
            return await WebhookQueueRepository(session).get_processing_since(cutoff)

    async def get_queue_stats(self) -> Dict[str, int]:
        """Job counts per status, every status present, plus a total."""
        async with self.session_scope(read_only=True) as session:
            counts = await WebhookQueueRepository(session).count_by_status()

        stats = {status: counts.get(status, 0) for status in JOB_STATUSES}
        stats["total"] = sum(counts.values())
        return stats
