"""
Availability block Pydantic schemas.

Defines request and response models for holds, maintenance blocks and
calendar views.
"""

from pydantic import BaseModel, Field, field_serializer
from datetime import date, datetime, time
from typing import Optional, List

from tourfleet.app.domain.scheduling.time_range import format_time
from tourfleet.app.models.enums import BlockType
from tourfleet.app.schemas.availability import TIME_PATTERN


class BlockResponse(BaseModel):
    """Schema for an availability block."""
    id: int
    vehicle_id: int
    block_date: date
    start_time: time
    end_time: time
    block_type: BlockType
    booking_id: Optional[int] = None
    brand_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer("start_time", "end_time")
    def serialize_time(self, value: time) -> str:
        return format_time(value)


class CalendarBlockResponse(BlockResponse):
    """Schema for a block in a fleet-wide calendar view."""
    vehicle_name: str


class BlockListResponse(BaseModel):
    blocks: List[BlockResponse]
    total: int


class CalendarBlockListResponse(BaseModel):
    blocks: List[CalendarBlockResponse]
    total: int


class HoldCreate(BaseModel):
    """Schema for placing a checkout hold on a vehicle."""
    vehicle_id: int = Field(..., gt=0)
    block_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    brand_id: Optional[int] = None


class HoldConvert(BaseModel):
    """Schema for converting a hold into a booking."""
    booking_id: int = Field(..., gt=0)


class HoldReleaseResponse(BaseModel):
    hold_id: int
    released: bool


class MaintenanceBlockCreate(BaseModel):
    """Schema for taking a vehicle out of service for a window."""
    vehicle_id: int = Field(..., gt=0)
    block_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    reason: str = Field(..., min_length=1, max_length=500)
    created_by: Optional[int] = None


class SweepResponse(BaseModel):
    deleted: int


class BookingBlocksDeletedResponse(BaseModel):
    booking_id: int
    deleted: int
