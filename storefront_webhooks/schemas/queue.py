from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .common import BaseResponse


class QueueJobResponse(BaseModel):
    id: int
    topic: str
    shopify_id: str
    payload: Dict[str, Any]
    status: str
    retry_count: int
    max_retries: int
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QueueJobListResponse(BaseResponse):
    jobs: List[QueueJobResponse] = Field(default_factory=list)
    count: int = 0


class QueueStatsResponse(BaseResponse):
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0
    processor_state: Optional[str] = Field(None, description="In-process processor state, if one is attached")
