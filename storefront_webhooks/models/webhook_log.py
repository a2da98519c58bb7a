from datetime import datetime
from typing import Dict, Any, Optional
from sqlalchemy import Column, Integer, String, DateTime, Text, func
from sqlalchemy.orm import Mapped

from .base import Base, JSONType


class WebhookLog(Base):
    """Append-only audit record of a handled webhook (no updated_at)."""

    __tablename__ = "webhook_logs"

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    webhook_topic: Mapped[str] = Column(String(100), nullable=False, index=True)
    shopify_id: Mapped[str] = Column(String(255), nullable=False, index=True)
    status: Mapped[str] = Column(String(50), nullable=False, index=True)
    payload: Mapped[Dict[str, Any]] = Column(JSONType, nullable=False)
    error_message: Mapped[Optional[str]] = Column(Text, nullable=True)
    retry_count: Mapped[int] = Column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<WebhookLog(id={self.id}, topic='{self.webhook_topic}', status='{self.status}')>"
