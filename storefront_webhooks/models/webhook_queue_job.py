from typing import Dict, Any, Optional
from sqlalchemy import Column, Integer, String, Text, Index, CheckConstraint
from sqlalchemy.orm import Mapped

from .base import BaseModel, JSONType


JOB_PENDING = "pending"
JOB_PROCESSING = "processing"
JOB_COMPLETED = "completed"
JOB_FAILED = "failed"

JOB_STATUSES = (JOB_PENDING, JOB_PROCESSING, JOB_COMPLETED, JOB_FAILED)


class WebhookQueueJob(BaseModel):
    """A queued Shopify webhook awaiting processing."""

    __tablename__ = "webhook_queue"
    __table_args__ = (
        Index("ix_webhook_queue_status_created_at", "status", "created_at"),
        CheckConstraint("retry_count >= 0", name="ck_webhook_queue_retry_count"),
        CheckConstraint("max_retries > 0", name="ck_webhook_queue_max_retries"),
    )

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    topic: Mapped[str] = Column(String(100), nullable=False, index=True)
    shopify_id: Mapped[str] = Column(String(255), nullable=False, index=True)
    payload: Mapped[Dict[str, Any]] = Column(JSONType, nullable=False)
    status: Mapped[str] = Column(String(20), nullable=False, default=JOB_PENDING)
    retry_count: Mapped[int] = Column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = Column(Integer, nullable=False, default=3)
    error_message: Mapped[Optional[str]] = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<WebhookQueueJob(id={self.id}, topic='{self.topic}', status='{self.status}', "
            f"retry_count={self.retry_count}/{self.max_retries})>"
        )

    @property
    def can_retry(self) -> bool:
        """Check if another attempt is allowed after a failure."""
        return self.retry_count < self.max_retries
