from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_webhooks.models.product import Product
from .base_repository import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Repository for Product operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Product, session)

    async def get_by_shopify_id(self, shopify_product_id: str) -> Optional[Product]:
        result = await self.session.execute(
            select(Product).where(Product.shopify_product_id == shopify_product_id)
        )
        return result.scalars().first()

    async def upsert_product(
        self,
        shopify_product_id: str,
        title: str,
        handle: str,
        description: str,
        product_type: str,
        vendor: str,
        status: Optional[str],
        tags: List[str],
        created_at: Optional[datetime] = None,
    ) -> None:
        """Insert a product or refresh it in place, keyed by the Shopify id."""
        values = {
            "shopify_product_id": shopify_product_id,
            "title": title,
            "handle": handle,
            "description": description,
            "product_type": product_type,
            "vendor": vendor,
            "status": status,
            "tags": tags,
        }
        if created_at is not None:
            values["created_at"] = created_at

        stmt = self.insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.shopify_product_id],
            set_={
                "title": stmt.excluded.title,
                "handle": stmt.excluded.handle,
                "description": stmt.excluded.description,
                "product_type": stmt.excluded.product_type,
                "vendor": stmt.excluded.vendor,
                "status": stmt.excluded.status,
                "tags": stmt.excluded.tags,
                "updated_at": func.now(),
            },
        )
        await self.session.execute(stmt)
