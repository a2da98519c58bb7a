from typing import List, Optional
from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import Mapped

from .base import BaseModel, JSONType


class Product(BaseModel):
    """Local copy of a Shopify product."""

    __tablename__ = "products"

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    shopify_product_id: Mapped[str] = Column(String(255), unique=True, nullable=False, index=True)
    title: Mapped[str] = Column(String(255), nullable=False)
    handle: Mapped[str] = Column(String(255), nullable=False, index=True)
    description: Mapped[str] = Column(Text, nullable=False, default="")
    product_type: Mapped[str] = Column(String(255), nullable=False, default="")
    vendor: Mapped[str] = Column(String(255), nullable=False, default="")
    status: Mapped[Optional[str]] = Column(String(50), nullable=True)
    tags: Mapped[List[str]] = Column(JSONType, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, shopify_product_id='{self.shopify_product_id}', handle='{self.handle}')>"
