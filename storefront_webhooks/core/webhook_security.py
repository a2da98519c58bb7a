import base64
import hmac
import hashlib
import json
from typing import Dict, Any
from fastapi import HTTPException, status, Request

from .config import settings
from .logging import get_logger

logger = get_logger(__name__)


class ShopifyWebhookVerifier:
    """Shopify webhook signature verification using HMAC-SHA256."""

    @staticmethod
    def generate_signature(payload: bytes, secret: str) -> str:
        """
        Generate the Shopify signature for a raw webhook body.

        Shopify signs the raw request body and sends the base64 encoded
        digest in the X-Shopify-Hmac-Sha256 header.
        """
        digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
        return base64.b64encode(digest).decode("utf-8")

    @staticmethod
    def verify_signature(payload: bytes, signature_header: str, secret: str) -> bool:
        """
        Verify a webhook body against its signature header.

        Raises:
            HTTPException: 401 if the signature does not match
        """
        expected_signature = ShopifyWebhookVerifier.generate_signature(payload, secret)

        if not hmac.compare_digest(signature_header.encode("utf-8"), expected_signature.encode("utf-8")):
            logger.warning(
                "Shopify webhook signature verification failed",
                received_prefix=signature_header[:8] + "..." if len(signature_header) > 8 else signature_header,
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid webhook signature",
            )

        return True


async def verify_shopify_webhook(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency to verify Shopify webhooks.

    Expected headers:
    - X-Shopify-Topic: <topic>, e.g. products/create
    - X-Shopify-Hmac-Sha256: <base64 digest>

    Returns:
        Dict with the topic and the parsed payload
    """
    topic = request.headers.get("X-Shopify-Topic")
    signature_header = request.headers.get("X-Shopify-Hmac-Sha256")

    if not topic:
        logger.warning("Missing X-Shopify-Topic header")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Shopify-Topic header",
        )

    if not signature_header:
        logger.warning("Missing X-Shopify-Hmac-Sha256 header", topic=topic)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Shopify-Hmac-Sha256 header",
        )

    body = await request.body()
    if not body:
        logger.warning("Empty webhook payload", topic=topic)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty payload",
        )

    ShopifyWebhookVerifier.verify_signature(body, signature_header, settings.SHOPIFY_WEBHOOK_SECRET)

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Invalid JSON payload: {e}", topic=topic)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        )

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload must be a JSON object",
        )

    logger.info("Shopify webhook verified", topic=topic, payload_size=len(body))
    return {"topic": topic, "payload": payload}
