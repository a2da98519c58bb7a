"""
Tests for the topic handlers.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import select, func

from storefront_webhooks.models import Product, InventoryLevel, WebhookLog
from storefront_webhooks.repositories import InventoryLevelRepository, ProductRepository, WebhookLogRepository


async def fetch_all(session_factory, model):
    async with session_factory() as session:
        result = await session.execute(select(model))
        return list(result.scalars().all())


async def count_rows(session_factory, model):
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar()


async def logs_for(session_factory, shopify_id):
    async with session_factory() as session:
        return await WebhookLogRepository(session).get_by_shopify_id(shopify_id)


async def get_product(session_factory, shopify_product_id):
    async with session_factory() as session:
        return await ProductRepository(session).get_by_shopify_id(shopify_product_id)


async def get_level(session_factory, inventory_item_id, location_id):
    async with session_factory() as session:
        return await InventoryLevelRepository(session).get_level(inventory_item_id, location_id)


class TestOrderHandlers:
    """orders/create and orders/updated only append to the audit log."""

    @pytest.mark.asyncio
    async def test_order_create_logs_success(self, event_handler, session_factory, make_job):
        payload = {"id": 450789469, "email": "seeker@example.com"}
        job = make_job("orders/create", payload, retry_count=2)

        assert await event_handler.handle(job) is True

        logs = await fetch_all(session_factory, WebhookLog)
        assert len(logs) == 1
        assert logs[0].webhook_topic == "orders/create"
        assert logs[0].shopify_id == "450789469"
        assert logs[0].status == "success"
        assert logs[0].payload == payload
        assert logs[0].retry_count == 2
        assert logs[0].error_message is None

    @pytest.mark.asyncio
    async def test_order_update_replay_appends(self, event_handler, session_factory, make_job):
        job = make_job("orders/updated", {"id": 450789469})

        await event_handler.handle(job)
        await event_handler.handle(job)

        logs = await logs_for(session_factory, "450789469")
        assert [log.webhook_topic for log in logs] == ["orders/updated", "orders/updated"]

    @pytest.mark.asyncio
    async def test_order_without_id_raises(self, event_handler, make_job):
        job = make_job("orders/create", {"email": "seeker@example.com"})

        with pytest.raises(ValidationError):
            await event_handler.handle(job)


class TestProductHandlers:
    """products/create upserts, products/update logs."""

    @pytest.mark.asyncio
    async def test_product_create_upserts_product(self, event_handler, session_factory, make_job, product_payload):
        job = make_job("products/create", product_payload)

        await event_handler.handle(job)

        products = await fetch_all(session_factory, Product)
        assert len(products) == 1
        product = products[0]
        assert product.shopify_product_id == "gid://1"
        assert product.title == "Tarot Deck"
        assert product.handle == "tarot-deck"
        assert product.tags == ["sacred", "new"]
        assert product.description == ""
        assert product.vendor == ""

        logs = await fetch_all(session_factory, WebhookLog)
        assert [(log.webhook_topic, log.status) for log in logs] == [("products/create", "success")]

    @pytest.mark.asyncio
    async def test_product_create_maps_optional_fields(self, event_handler, session_factory, make_job):
        payload = {
            "id": 632910392,
            "title": "Moon Water Candle",
            "handle": "moon-water-candle",
            "body_html": "<p>Hand poured.</p>",
            "product_type": "Candle",
            "vendor": "Midnight Magnolia",
            "status": "active",
            "tags": ["ritual", " moon "],
            "created_at": "2026-10-01T19:00:00-04:00",
        }

        await event_handler.handle(make_job("products/create", payload))

        product = await get_product(session_factory, "632910392")
        assert product is not None
        assert product.description == "<p>Hand poured.</p>"
        assert product.product_type == "Candle"
        assert product.vendor == "Midnight Magnolia"
        assert product.status == "active"
        assert product.tags == ["ritual", "moon"]

    @pytest.mark.asyncio
    async def test_product_create_replay_is_idempotent(self, event_handler, session_factory, make_job, product_payload):
        await event_handler.handle(make_job("products/create", product_payload))
        await event_handler.handle(make_job("products/create", {**product_payload, "title": "Tarot Deck II"}))

        products = await fetch_all(session_factory, Product)
        assert len(products) == 1
        assert products[0].title == "Tarot Deck II"

    @pytest.mark.asyncio
    async def test_product_update_logs_only(self, event_handler, session_factory, make_job, product_payload):
        await event_handler.handle(make_job("products/update", product_payload))

        assert await count_rows(session_factory, Product) == 0
        logs = await fetch_all(session_factory, WebhookLog)
        assert [(log.webhook_topic, log.shopify_id) for log in logs] == [("products/update", "gid://1")]


class TestInventoryHandler:
    """inventory_levels/update is an upsert on (item, location)."""

    @pytest.mark.asyncio
    async def test_inventory_update_twice_single_row(self, event_handler, session_factory, make_job, inventory_payload):
        job = make_job("inventory_levels/update", inventory_payload)

        await event_handler.handle(job)
        await event_handler.handle(job)

        levels = await fetch_all(session_factory, InventoryLevel)
        assert len(levels) == 1
        assert levels[0].inventory_item_id == "808950810"
        assert levels[0].location_id == "905684977"
        assert levels[0].available == 6

        logs = await logs_for(session_factory, "808950810")
        assert [(log.webhook_topic, log.status) for log in logs] == [
            ("inventory_levels/update", "success"),
            ("inventory_levels/update", "success"),
        ]
        assert logs[0].payload == inventory_payload

    @pytest.mark.asyncio
    async def test_inventory_update_keeps_latest(self, event_handler, session_factory, make_job, inventory_payload):
        await event_handler.handle(make_job("inventory_levels/update", inventory_payload))
        await event_handler.handle(make_job("inventory_levels/update", {**inventory_payload, "available": 2}))
        await event_handler.handle(make_job("inventory_levels/update", {**inventory_payload, "location_id": 1}))

        assert (await get_level(session_factory, "808950810", "905684977")).available == 2
        assert (await get_level(session_factory, "808950810", "1")).available == 6
        assert await count_rows(session_factory, InventoryLevel) == 2

    @pytest.mark.asyncio
    async def test_inventory_update_missing_available_raises(self, event_handler, make_job):
        job = make_job("inventory_levels/update", {"inventory_item_id": 1, "location_id": 2})

        with pytest.raises(ValidationError):
            await event_handler.handle(job)

    @pytest.mark.asyncio
    async def test_invalid_inventory_payload_writes_nothing(self, event_handler, session_factory, make_job):
        job = make_job("inventory_levels/update", {"inventory_item_id": 1, "location_id": 2, "available": "many"})

        with pytest.raises(ValidationError):
            await event_handler.handle(job)

        assert await count_rows(session_factory, InventoryLevel) == 0
        assert await count_rows(session_factory, WebhookLog) == 0


class TestDispatch:

    @pytest.mark.asyncio
    async def test_unknown_topic_is_ignored(self, event_handler, session_factory, make_job):
        assert await event_handler.handle(make_job("app/uninstalled", {"id": 1})) is False
        assert await count_rows(session_factory, WebhookLog) == 0

    def test_supported_topics(self, event_handler):
        assert event_handler.topics == [
            "inventory_levels/update",
            "orders/create",
            "orders/updated",
            "products/create",
            "products/update",
        ]
        assert event_handler.supports("products/create")
        assert not event_handler.supports("customers/create")


class TestLogStats:

    @pytest.mark.asyncio
    async def test_counts_recent_entries_per_status(self, event_handler, session_factory, make_job, inventory_payload):
        await event_handler.handle(make_job("orders/create", {"id": 1}))
        await event_handler.handle(make_job("inventory_levels/update", inventory_payload))
        async with session_factory() as session:
            session.add(WebhookLog(
                webhook_topic="orders/create",
                shopify_id="2",
                status="failed",
                payload={"id": 2},
                retry_count=3,
                created_at=datetime.now(timezone.utc) - timedelta(hours=48),
            ))
            await session.commit()

        assert await event_handler.get_log_stats(hours=24) == {"success": 2}
        assert await event_handler.get_log_stats(hours=72) == {"success": 2, "failed": 1}

    @pytest.mark.asyncio
    async def test_empty_log(self, event_handler):
        assert await event_handler.get_log_stats() == {}
