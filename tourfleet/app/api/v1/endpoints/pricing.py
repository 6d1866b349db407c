"""
Pricing API Endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.db.session import get_db
from tourfleet.app.domain.pricing.pricing_service import PricingService
from tourfleet.app.schemas.pricing import PricingQuoteRequest, PricingQuoteResponse

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.post("/quote", response_model=PricingQuoteResponse)
async def quote(
    request: PricingQuoteRequest,
    db: AsyncSession = Depends(get_db)
):
    """Quote a tour without reserving anything."""
    result = await PricingService.calculate_pricing(
        db, request.tour_date, request.party_size, request.duration_hours
    )
    return PricingQuoteResponse.model_validate(result)
