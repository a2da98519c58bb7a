import asyncio
from enum import Enum
from typing import Optional

from storefront_webhooks.core.config import settings
from storefront_webhooks.core.logging import get_logger
from storefront_webhooks.models.webhook_queue_job import WebhookQueueJob
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler


class ProcessorState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class JobOutcome(str, Enum):
    IDLE = "idle"            # nothing pending
    COMPLETED = "completed"
    RETRIED = "retried"
    FAILED = "failed"
    ERROR = "error"          # the tick itself failed, e.g. store unreachable


class WebhookProcessor:
    """
    Timer driven consumer of the webhook queue.

    Each tick claims at most one job, runs its topic handler and records
    the result. Ticks run one after another on a single asyncio task, so
    they never overlap. Retried jobs wait for a later tick; there is no
    other backoff.
    """

    def __init__(
        self,
        queue: WebhookQueue,
        event_handler: WebhookEventHandler,
        interval_ms: Optional[int] = None,
    ):
        self.queue = queue
        self.event_handler = event_handler
        self.interval_ms = settings.WEBHOOK_PROCESSOR_INTERVAL_MS if interval_ms is None else interval_ms
        if self.interval_ms < 1:
            raise ValueError("interval_ms must be a positive integer")
        self.logger = get_logger(self.__class__.__name__)
        self._state = ProcessorState.STOPPED
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == ProcessorState.RUNNING

    def start(self) -> bool:
        """
        Start the timer on the running event loop.

        Returns False, and only logs, if the processor is already running.
        """
        if self.is_running:
            self.logger.info("Webhook processor is already running")
            return False

        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(self._stop_event))
        self._state = ProcessorState.RUNNING
        self.logger.info("Webhook processor started", interval_ms=self.interval_ms)
        return True

    async def stop(self) -> bool:
        """
        Stop the timer. A tick already in flight is allowed to finish.

        Returns False, and only logs, if the processor is not running.
        """
        if not self.is_running:
            self.logger.info("Webhook processor is not running")
            return False

        self._state = ProcessorState.STOPPED
        self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            await task
        self.logger.info("Webhook processor stopped")
        return True

    async def _run(self, stop_event: asyncio.Event):
        interval = self.interval_ms / 1000
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await self.process_next_job()

    async def process_next_job(self) -> JobOutcome:
        """Run one tick. Never raises."""
        try:
            job = await self.queue.dequeue()
            if job is None:
                return JobOutcome.IDLE

            log = self.logger.for_job(job)
            log.info("Processing webhook job")

            try:
                await self.event_handler.handle(job)
            except Exception as e:
                error_message = str(e) or e.__class__.__name__
                log.error("Failed to process webhook job", error=error_message)
                return await self._resolve_failure(job, error_message)

            await self.queue.mark_completed(job.id)
            log.info("Completed webhook job")
            return JobOutcome.COMPLETED

        except Exception as e:
            self.logger.exception("Webhook processor tick failed", error=str(e))
            return JobOutcome.ERROR

    async def _resolve_failure(self, job: WebhookQueueJob, error_message: str) -> JobOutcome:
        if job.can_retry:
            retried = await self.queue.retry_job(job.id)
            if retried is not None:
                self.logger.info(
                    "Retrying webhook job",
                    job_id=job.id,
                    attempt=retried.retry_count,
                    max_retries=retried.max_retries,
                )
                return JobOutcome.RETRIED

        await self.queue.mark_failed(job.id, error_message)
        self.logger.warning("Max retries reached for webhook job", job_id=job.id, max_retries=job.max_retries)
        return JobOutcome.FAILED
