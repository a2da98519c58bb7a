from celery import Celery

from storefront_webhooks.core.config import settings

# Create Celery instance
celery_app = Celery(
    "storefront_webhooks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "storefront_webhooks.workers.tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    # Task serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task routing
    task_routes={
        "storefront_webhooks.workers.tasks.*": {"queue": "webhook_tasks"},
    },

    # One tick at a time per worker; the store claim handles the rest
    worker_concurrency=1,
    worker_prefetch_multiplier=1,
    task_acks_late=True,

    # Beat schedule: same cadence as the in-process processor
    beat_schedule={
        "process-webhook-queue": {
            "task": "storefront_webhooks.workers.tasks.process_webhook_queue",
            "schedule": settings.WEBHOOK_PROCESSOR_INTERVAL_MS / 1000,
        },
    },
)
