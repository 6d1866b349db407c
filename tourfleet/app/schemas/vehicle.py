"""
Vehicle Pydantic schemas.

Defines request and response models for fleet administration.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from tourfleet.app.models.enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for adding a vehicle to the fleet."""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    license_plate: str = Field(..., min_length=1, max_length=20, description="Unique plate number")
    capacity: int = Field(..., gt=0, description="Guest seats, excluding the driver")
    vehicle_type: Optional[str] = Field(None, max_length=50, description="Vehicle type (e.g., sprinter)")
    status: VehicleStatus = VehicleStatus.AVAILABLE

    # Brand scope
    available_to_all_brands: bool = True
    brand_ids: List[int] = []

    # Compliance
    registration_expiry: Optional[date] = None
    insurance_expiry: Optional[date] = None
    last_dot_inspection: Optional[date] = None


class VehicleUpdate(BaseModel):
    """Schema for updating a vehicle. Omitted fields are left unchanged."""
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, gt=0)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    status: Optional[VehicleStatus] = None
    available_to_all_brands: Optional[bool] = None
    brand_ids: Optional[List[int]] = None
    registration_expiry: Optional[date] = None
    insurance_expiry: Optional[date] = None
    last_dot_inspection: Optional[date] = None

    @field_validator("make", "model", "capacity", "status", "available_to_all_brands", "brand_ids")
    @classmethod
    def reject_null(cls, value):
        # These columns are NOT NULL; omit the field to leave it unchanged
        if value is None:
            raise ValueError("may not be null")
        return value


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    make: str
    model: str
    license_plate: str
    capacity: int
    vehicle_type: Optional[str]
    status: VehicleStatus
    available_to_all_brands: bool
    brand_ids: List[int]
    registration_expiry: Optional[date]
    insurance_expiry: Optional[date]
    last_dot_inspection: Optional[date]
    archived_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
