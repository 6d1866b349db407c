"""
Booking Workflow API Endpoints.

Checkout places a hold and quotes the tour; confirmation runs compliance
and turns the hold into a booking with buffers.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.db.session import get_db
from tourfleet.app.schemas.availability import AvailabilityResponse, BookingRequest
from tourfleet.app.schemas.block import BlockResponse
from tourfleet.app.schemas.booking import CheckoutResponse, ConfirmBookingRequest, ConfirmBookingResponse
from tourfleet.app.schemas.pricing import PricingQuoteResponse
from tourfleet.app.services.booking_workflow import confirm_booking, start_checkout

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    request: BookingRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Start a checkout.

    On success the response carries the hold (expiring after the hold TTL)
    and the price quote. When nothing is free, hold and pricing are null
    and availability.conflicts says why.
    """
    result = await start_checkout(
        db,
        request.tour_date,
        request.start_time,
        request.duration_hours,
        request.party_size,
        brand_id=request.brand_id
    )
    return CheckoutResponse(
        availability=AvailabilityResponse.model_validate(result.availability),
        hold=BlockResponse.model_validate(result.hold) if result.hold else None,
        pricing=PricingQuoteResponse.model_validate(result.pricing) if result.pricing else None
    )


@router.post("/confirm", response_model=ConfirmBookingResponse)
async def confirm(
    request: ConfirmBookingRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Confirm a paid checkout.

    Returns 404 if the hold expired or was released, and 422
    (ERR_COMPLIANCE_BLOCKED) when critical compliance violations block it.
    """
    result = await confirm_booking(db, request.hold_id, request.booking_id, driver_id=request.driver_id)
    return ConfirmBookingResponse(
        booking_block=BlockResponse.model_validate(result.booking_block),
        buffers=[BlockResponse.model_validate(b) for b in result.buffers],
        warnings=result.warnings
    )
