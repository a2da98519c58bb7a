from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import Mapped

from .base import Base


class InventoryLevel(Base):
    """Available quantity of an inventory item at one location."""

    __tablename__ = "inventory_levels"

    inventory_item_id: Mapped[str] = Column(String(255), primary_key=True)
    location_id: Mapped[str] = Column(String(255), primary_key=True)
    available: Mapped[int] = Column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryLevel(inventory_item_id='{self.inventory_item_id}', "
            f"location_id='{self.location_id}', available={self.available})>"
        )
