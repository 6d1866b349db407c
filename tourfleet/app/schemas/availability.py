"""
Availability Pydantic schemas.

Defines the booking request and the availability/slot responses.
Times travel as 24-hour "HH:MM" strings.
"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List

from tourfleet.app.core.config import settings

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BookingRequest(BaseModel):
    """Schema for an availability check. Not persisted."""
    tour_date: date = Field(..., description="Tour date (YYYY-MM-DD)")
    start_time: str = Field(..., pattern=TIME_PATTERN, description="Tour start (HH:MM, 24-hour)")
    duration_hours: float = Field(
        ...,
        ge=settings.min_duration_hours,
        le=settings.max_duration_hours,
        description="Tour length in hours"
    )
    party_size: int = Field(
        ...,
        ge=settings.min_party_size,
        le=settings.max_party_size,
        description="Number of guests"
    )
    brand_id: Optional[int] = Field(None, description="Brand the request is made for")


class AvailabilityResponse(BaseModel):
    """Schema for an availability decision."""
    available: bool
    start_time: str
    end_time: Optional[str] = None
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_capacity: Optional[int] = None
    conflicts: List[str] = []

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    """Schema for one enumerated start time."""
    start_time: str
    end_time: str
    available: bool
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None

    class Config:
        from_attributes = True


class SlotListResponse(BaseModel):
    """Schema for a day's slots."""
    tour_date: date
    duration_hours: float
    party_size: int
    slots: List[SlotResponse]
    available_count: int


class AvailableVehicleResponse(BaseModel):
    """Schema for a vehicle free for a window."""
    id: int
    name: str
    capacity: int
    vehicle_type: Optional[str]

    class Config:
        from_attributes = True


class AvailableVehicleListResponse(BaseModel):
    vehicles: List[AvailableVehicleResponse]
    total: int
