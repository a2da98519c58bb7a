"""
Pytest configuration and fixtures for the webhook service tests.
"""
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import event

from storefront_webhooks.core.database import DatabaseManager, create_engine_from_url, create_session_factory
from storefront_webhooks.models.webhook_queue_job import WebhookQueueJob, JOB_PROCESSING
from storefront_webhooks.services.webhook_queue import WebhookQueue
from storefront_webhooks.services.webhook_event_handler import WebhookEventHandler
from storefront_webhooks.workers.webhook_processor import WebhookProcessor


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File backed SQLite store so separate sessions get separate connections."""
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'webhooks.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    await DatabaseManager(engine).create_tables()
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def queue(session_factory):
    return WebhookQueue(session_factory, default_max_retries=3)


@pytest.fixture
def event_handler(session_factory):
    return WebhookEventHandler(session_factory)


@pytest.fixture
def processor(queue, event_handler):
    return WebhookProcessor(queue, event_handler, interval_ms=10)


@pytest.fixture
def product_payload():
    """Sample products/create payload."""
    return {
        "id": "gid://1",
        "title": "Tarot Deck",
        "handle": "tarot-deck",
        "tags": "sacred, new",
    }


@pytest.fixture
def inventory_payload():
    """Sample inventory_levels/update payload."""
    return {
        "inventory_item_id": 808950810,
        "location_id": 905684977,
        "available": 6,
    }


@pytest.fixture
def make_job():
    """Build a detached job as dequeue() would return it."""
    def _make_job(topic: str = "orders/create", payload: dict = None, retry_count: int = 0, max_retries: int = 3, id: int = 1):
        return WebhookQueueJob(
            id=id,
            topic=topic,
            shopify_id=str((payload or {}).get("id", "1001")),
            payload=payload or {"id": 1001},
            status=JOB_PROCESSING,
            retry_count=retry_count,
            max_retries=max_retries,
        )
    return _make_job


# Mock collaborator fixtures
@pytest.fixture
def mock_queue():
    """Mock webhook queue."""
    queue = MagicMock(spec=WebhookQueue)
    queue.enqueue = AsyncMock()
    queue.dequeue = AsyncMock(return_value=None)
    queue.mark_completed = AsyncMock(return_value=True)
    queue.mark_failed = AsyncMock(return_value=True)
    queue.retry_job = AsyncMock()
    queue.get_queue_stats = AsyncMock()
    queue.get_failed_jobs = AsyncMock(return_value=[])
    queue.get_stale_processing_jobs = AsyncMock(return_value=[])
    return queue


@pytest.fixture
def mock_event_handler():
    """Mock topic handler."""
    handler = MagicMock(spec=WebhookEventHandler)
    handler.handle = AsyncMock(return_value=True)
    return handler
