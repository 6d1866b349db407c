"""
Blackout date Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List


class BlackoutCreate(BaseModel):
    """Schema for closing a date. Omit brand_id to close it for every brand."""
    blackout_date: date
    brand_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=255, description="Shown to customers verbatim")


class BlackoutResponse(BaseModel):
    id: int
    blackout_date: date
    brand_id: Optional[int]
    reason: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BlackoutListResponse(BaseModel):
    blackouts: List[BlackoutResponse]
    total: int
