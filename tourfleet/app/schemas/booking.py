"""
Booking workflow Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List

from tourfleet.app.schemas.availability import AvailabilityResponse
from tourfleet.app.schemas.block import BlockResponse
from tourfleet.app.schemas.pricing import PricingQuoteResponse
from tourfleet.app.schemas.compliance import ViolationResponse


class CheckoutResponse(BaseModel):
    """Schema for a started checkout. hold is None when nothing was free."""
    availability: AvailabilityResponse
    hold: Optional[BlockResponse] = None
    pricing: Optional[PricingQuoteResponse] = None

    class Config:
        from_attributes = True


class ConfirmBookingRequest(BaseModel):
    """Schema for confirming a paid checkout."""
    hold_id: int = Field(..., gt=0)
    booking_id: int = Field(..., gt=0)
    driver_id: Optional[int] = Field(None, gt=0, description="Assigned driver, checked for compliance")


class ConfirmBookingResponse(BaseModel):
    booking_block: BlockResponse
    buffers: List[BlockResponse]
    warnings: List[ViolationResponse] = []

    class Config:
        from_attributes = True
