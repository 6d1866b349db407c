"""
Pricing Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional

from tourfleet.app.core.config import settings


class PricingQuoteRequest(BaseModel):
    """Schema for a price quote."""
    tour_date: date
    party_size: int = Field(..., ge=settings.min_party_size, le=settings.max_party_size)
    duration_hours: float = Field(..., ge=settings.min_duration_hours, le=settings.max_duration_hours)


class PricingQuoteResponse(BaseModel):
    """Schema for a price quote. All amounts rounded to cents."""
    vehicle_type: str
    base_price: float
    weekend_multiplier_applied: bool
    gratuity: float
    taxes: float
    total_price: float
    deposit_amount: float
    final_payment_amount: float
    pricing_rule_id: Optional[int] = None

    class Config:
        from_attributes = True
