from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_webhooks.models.inventory_level import InventoryLevel
from .base_repository import BaseRepository


class InventoryLevelRepository(BaseRepository[InventoryLevel]):
    """Repository for per-location inventory levels."""

    def __init__(self, session: AsyncSession):
        super().__init__(InventoryLevel, session)

    async def get_level(self, inventory_item_id: str, location_id: str) -> Optional[InventoryLevel]:
        query = select(InventoryLevel).where(
            InventoryLevel.inventory_item_id == inventory_item_id,
            InventoryLevel.location_id == location_id,
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def upsert_level(self, inventory_item_id: str, location_id: str, available: int) -> None:
        """Set the available quantity; replays converge on the same row."""
        stmt = self.insert().values(
            inventory_item_id=inventory_item_id,
            location_id=location_id,
            available=available,
            updated_at=func.now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[InventoryLevel.inventory_item_id, InventoryLevel.location_id],
            set_={"available": stmt.excluded.available, "updated_at": func.now()},
        )
        await self.session.execute(stmt)
