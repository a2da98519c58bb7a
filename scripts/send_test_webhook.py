#!/usr/bin/env python3
"""
Shopify Webhook Testing Utility

Signs a sample Shopify webhook the way Shopify does and posts it to the
ingress endpoint of a running service.

Usage:
    python scripts/send_test_webhook.py --help
    python scripts/send_test_webhook.py products/create --id gid://1
    python scripts/send_test_webhook.py inventory_levels/update --available 7
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, Any

import httpx

from storefront_webhooks.core.webhook_security import ShopifyWebhookVerifier

DEFAULT_URL = "http://localhost:8000/v1/webhooks/shopify"
DEFAULT_SECRET = "shopify-webhook-secret-change-in-production"


def sample_payload(topic: str, args: argparse.Namespace) -> Dict[str, Any]:
    if topic.startswith("orders/"):
        return {"id": args.id, "email": "seeker@example.com", "total_price": "44.00"}
    if topic.startswith("products/"):
        return {
            "id": args.id,
            "title": "Tarot Deck",
            "handle": "tarot-deck",
            "body_html": "<p>A deck for the midnight hours.</p>",
            "product_type": "Deck",
            "vendor": "Midnight Magnolia",
            "status": "active",
            "tags": "sacred, new",
        }
    if topic == "inventory_levels/update":
        return {"inventory_item_id": args.id, "location_id": args.location_id, "available": args.available}
    return {"id": args.id}


async def send_webhook(url: str, topic: str, payload: Dict[str, Any], secret: str) -> int:
    body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Topic": topic,
        "X-Shopify-Hmac-Sha256": ShopifyWebhookVerifier.generate_signature(body, secret),
    }

    print(f"📤 Sending {topic} webhook to: {url}")
    async with httpx.AsyncClient(timeout=30) as client:
        response = await client.post(url, content=body, headers=headers)

    print(f"📥 {response.status_code}: {response.text}")
    return response.status_code


def main():
    parser = argparse.ArgumentParser(description="Send a signed Shopify webhook")
    parser.add_argument("topic", help="Webhook topic, e.g. products/create")
    parser.add_argument("--url", default=DEFAULT_URL)
    parser.add_argument("--secret", default=DEFAULT_SECRET)
    parser.add_argument("--id", default="1001")
    parser.add_argument("--location-id", default="2002")
    parser.add_argument("--available", type=int, default=5)
    args = parser.parse_args()

    status_code = asyncio.run(send_webhook(args.url, args.topic, sample_payload(args.topic, args), args.secret))
    sys.exit(0 if status_code < 400 else 1)


if __name__ == "__main__":
    main()
