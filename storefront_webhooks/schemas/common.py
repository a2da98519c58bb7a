from typing import Optional
from pydantic import BaseModel


class BaseResponse(BaseModel):
    """Base response schema with consistent structure."""

    success: bool = True
    message: Optional[str] = None

    class Config:
        from_attributes = True
