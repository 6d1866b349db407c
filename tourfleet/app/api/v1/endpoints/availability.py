"""
Availability API Endpoints.

Answers whether a tour can run, enumerates a day's slots and lists the
vehicles free for a window.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.db.session import get_db
from tourfleet.app.domain.scheduling.time_range import TimeRange, parse_time
from tourfleet.app.schemas.availability import (
    AvailabilityResponse,
    AvailableVehicleListResponse,
    AvailableVehicleResponse,
    BookingRequest,
    SlotListResponse,
    SlotResponse,
    TIME_PATTERN,
)
from tourfleet.app.services.availability import check_availability, enumerate_slots
from tourfleet.app.services.vehicle_selector import list_available_vehicles

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.post("/check", response_model=AvailabilityResponse)
async def check(
    request: BookingRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Check whether a tour can run and which vehicle would serve it.

    An unavailable slot is a normal 200 response with available=false and
    the reasons in conflicts.
    """
    result = await check_availability(
        db,
        request.tour_date,
        request.start_time,
        request.duration_hours,
        request.party_size,
        brand_id=request.brand_id
    )
    return AvailabilityResponse.model_validate(result)


@router.get("/slots", response_model=SlotListResponse)
async def slots(
    tour_date: date = Query(..., alias="date", description="Tour date (YYYY-MM-DD)"),
    duration_hours: float = Query(..., ge=settings.min_duration_hours, le=settings.max_duration_hours),
    party_size: int = Query(..., ge=settings.min_party_size, le=settings.max_party_size),
    brand_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """List every hourly start time for the day with its availability."""
    day_slots = await enumerate_slots(db, tour_date, duration_hours, party_size, brand_id=brand_id)
    return SlotListResponse(
        tour_date=tour_date,
        duration_hours=duration_hours,
        party_size=party_size,
        slots=[SlotResponse.model_validate(s) for s in day_slots],
        available_count=sum(1 for s in day_slots if s.available)
    )


@router.get("/vehicles", response_model=AvailableVehicleListResponse)
async def vehicles(
    tour_date: date = Query(..., alias="date", description="Tour date (YYYY-MM-DD)"),
    start_time: str = Query(..., pattern=TIME_PATTERN),
    end_time: str = Query(..., pattern=TIME_PATTERN),
    party_size: int = Query(1, ge=settings.min_party_size, le=settings.max_party_size),
    brand_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """List every vehicle free for the window, smallest first."""
    window = TimeRange(tour_date, parse_time(start_time), parse_time(end_time))
    free = await list_available_vehicles(db, window.day, window.start, window.end, party_size, brand_id)
    return AvailableVehicleListResponse(
        vehicles=[AvailableVehicleResponse.model_validate(v) for v in free],
        total=len(free)
    )
