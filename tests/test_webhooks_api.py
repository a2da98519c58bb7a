"""
Tests for the webhook ingress and queue inspection endpoints.
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from storefront_webhooks.api.deps import get_event_handler, get_webhook_queue
from storefront_webhooks.api.v1.endpoints.webhooks import extract_source_id
from storefront_webhooks.core.config import settings
from storefront_webhooks.core.database import get_async_session
from storefront_webhooks.core.exceptions import StoreUnavailableError, UnsupportedPayloadError
from storefront_webhooks.core.webhook_security import ShopifyWebhookVerifier
from storefront_webhooks.main import app
from storefront_webhooks.models.webhook_queue_job import JOB_FAILED


@pytest.fixture
def client(mock_queue):
    # Not entered as a context manager, so the lifespan processor stays off
    app.dependency_overrides[get_webhook_queue] = lambda: mock_queue
    yield TestClient(app)
    app.dependency_overrides.clear()


def signed_headers(body: bytes, topic: str = "products/create") -> dict:
    return {
        "Content-Type": "application/json",
        "X-Shopify-Topic": topic,
        "X-Shopify-Hmac-Sha256": ShopifyWebhookVerifier.generate_signature(body, settings.SHOPIFY_WEBHOOK_SECRET),
    }


class TestExtractSourceId:

    def test_uses_resource_id(self):
        assert extract_source_id({"id": 1001, "inventory_item_id": 5}) == "1001"

    def test_falls_back_to_inventory_item(self):
        assert extract_source_id({"inventory_item_id": 808950810, "location_id": 1}) == "808950810"

    def test_rejects_payload_without_id(self):
        with pytest.raises(UnsupportedPayloadError):
            extract_source_id({"title": "Tarot Deck"})


class TestReceiveShopifyWebhook:

    def test_queues_signed_webhook(self, client, mock_queue, make_job, product_payload):
        mock_queue.enqueue.return_value = make_job(topic="products/create", payload=product_payload, id=42)
        body = json.dumps(product_payload).encode()

        response = client.post("/v1/webhooks/shopify", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "queued"
        assert data["job_id"] == 42
        assert data["topic"] == "products/create"
        mock_queue.enqueue.assert_awaited_once_with("products/create", "gid://1", product_payload)

    def test_inventory_webhook_keyed_by_item(self, client, mock_queue, make_job, inventory_payload):
        mock_queue.enqueue.return_value = make_job(topic="inventory_levels/update", payload=inventory_payload, id=7)
        body = json.dumps(inventory_payload).encode()

        response = client.post(
            "/v1/webhooks/shopify", content=body, headers=signed_headers(body, "inventory_levels/update")
        )

        assert response.status_code == 200
        mock_queue.enqueue.assert_awaited_once_with("inventory_levels/update", "808950810", inventory_payload)

    def test_missing_topic_header(self, client, mock_queue):
        body = b'{"id": 1}'
        headers = signed_headers(body)
        del headers["X-Shopify-Topic"]

        response = client.post("/v1/webhooks/shopify", content=body, headers=headers)

        assert response.status_code == 400
        assert response.json()["success"] is False
        mock_queue.enqueue.assert_not_called()

    def test_invalid_signature(self, client, mock_queue):
        body = b'{"id": 1}'
        headers = signed_headers(body)
        headers["X-Shopify-Hmac-Sha256"] = ShopifyWebhookVerifier.generate_signature(body, "wrong-secret")

        response = client.post("/v1/webhooks/shopify", content=body, headers=headers)

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid webhook signature"
        mock_queue.enqueue.assert_not_called()

    def test_malformed_signature_error_body(self, client, mock_queue):
        body = b'{"id": 1}'
        headers = signed_headers(body)
        headers["X-Shopify-Hmac-Sha256"] = "bogus"

        response = client.post("/v1/webhooks/shopify", content=body, headers=headers)

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Invalid webhook signature",
            "status_code": 401,
        }

    def test_store_unavailable_error_body(self, client, mock_queue):
        mock_queue.enqueue.side_effect = StoreUnavailableError("connection refused")
        body = b'{"id": 1}'

        response = client.post("/v1/webhooks/shopify", content=body, headers=signed_headers(body))

        assert response.status_code == 503
        assert response.json()["status_code"] == 503
        assert response.json()["error"] == "Webhook queue unavailable, retry later"

    def test_payload_without_id(self, client, mock_queue):
        body = b'{"title": "Tarot Deck"}'

        response = client.post("/v1/webhooks/shopify", content=body, headers=signed_headers(body))

        assert response.status_code == 400
        mock_queue.enqueue.assert_not_called()

    def test_store_unavailable(self, client, mock_queue):
        mock_queue.enqueue.side_effect = StoreUnavailableError("connection refused")
        body = b'{"id": 1}'

        response = client.post("/v1/webhooks/shopify", content=body, headers=signed_headers(body))

        assert response.status_code == 503
        assert response.json()["success"] is False


class TestQueueEndpoints:

    def test_queue_stats(self, client, mock_queue):
        mock_queue.get_queue_stats.return_value = {
            "pending": 2,
            "processing": 1,
            "completed": 10,
            "failed": 1,
            "total": 14,
        }

        response = client.get("/v1/webhooks/queue/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["pending"] == 2
        assert data["total"] == 14
        assert data["processor_state"] is None

    def test_queue_stats_error(self, client, mock_queue):
        mock_queue.get_queue_stats.side_effect = Exception("database unreachable")

        response = client.get("/v1/webhooks/queue/stats")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to get queue stats"

    def test_failed_jobs(self, client, mock_queue, make_job):
        job = make_job(id=3, retry_count=3, max_retries=3)
        job.status = JOB_FAILED
        job.error_message = "handler always fails"
        mock_queue.get_failed_jobs.return_value = [job]

        response = client.get("/v1/webhooks/queue/failed", params={"limit": 10})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["jobs"][0]["id"] == 3
        assert data["jobs"][0]["error_message"] == "handler always fails"
        mock_queue.get_failed_jobs.assert_awaited_once_with(10)

    def test_failed_jobs_default_limit(self, client, mock_queue):
        response = client.get("/v1/webhooks/queue/failed")

        assert response.status_code == 200
        mock_queue.get_failed_jobs.assert_awaited_once_with(None)

    def test_failed_jobs_limit_bounds(self, client, mock_queue):
        response = client.get("/v1/webhooks/queue/failed", params={"limit": 0})

        assert response.status_code == 422
        mock_queue.get_failed_jobs.assert_not_called()

    def test_stale_jobs(self, client, mock_queue, make_job):
        mock_queue.get_stale_processing_jobs.return_value = [make_job(id=5)]

        response = client.get("/v1/webhooks/queue/stale", params={"older_than_seconds": 60})

        assert response.status_code == 200
        assert response.json()["jobs"][0]["status"] == "processing"
        mock_queue.get_stale_processing_jobs.assert_awaited_once_with(60)


class TestHealthEndpoints:

    def test_health_check(self, client):
        response = client.get("/v1/health/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health_check(self, client):
        session = MagicMock()
        session.execute = AsyncMock()
        app.dependency_overrides[get_async_session] = lambda: session

        response = client.get("/v1/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["processor"]["status"] == "disabled"

    def test_detailed_health_check_database_down(self, client):
        session = MagicMock()
        session.execute = AsyncMock(side_effect=Exception("connection refused"))
        app.dependency_overrides[get_async_session] = lambda: session

        response = client.get("/v1/health/detailed")

        assert response.json()["status"] == "unhealthy"


class TestWebhookLogStats:

    def test_log_stats(self, client, mock_event_handler):
        mock_event_handler.get_log_stats = AsyncMock(return_value={"success": 12, "failed": 1})
        app.dependency_overrides[get_event_handler] = lambda: mock_event_handler

        response = client.get("/v1/webhooks/logs/stats", params={"hours": 6})

        assert response.status_code == 200
        data = response.json()
        assert data["hours"] == 6
        assert data["counts"] == {"success": 12, "failed": 1}
        assert data["total"] == 13
        mock_event_handler.get_log_stats.assert_awaited_once_with(6)

    def test_log_stats_error(self, client, mock_event_handler):
        mock_event_handler.get_log_stats = AsyncMock(side_effect=Exception("database unreachable"))
        app.dependency_overrides[get_event_handler] = lambda: mock_event_handler

        response = client.get("/v1/webhooks/logs/stats")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to get webhook log stats"
