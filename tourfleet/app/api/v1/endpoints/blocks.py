"""
Availability Block API Endpoints.

Holds, maintenance blocks and calendar views over vehicle time.
Booking blocks are only removed through their booking.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.db.session import get_db
from tourfleet.app.domain.scheduling.time_range import parse_time
from tourfleet.app.schemas.block import (
    BlockListResponse,
    BlockResponse,
    BookingBlocksDeletedResponse,
    CalendarBlockListResponse,
    CalendarBlockResponse,
    HoldConvert,
    HoldCreate,
    HoldReleaseResponse,
    MaintenanceBlockCreate,
    SweepResponse,
)
from tourfleet.app.services import availability_blocks, holds

router = APIRouter(tags=["Availability Blocks"])


def _calendar_entry(block, vehicle) -> CalendarBlockResponse:
    return CalendarBlockResponse(
        **BlockResponse.model_validate(block).model_dump(),
        vehicle_name=vehicle.name
    )


# Holds

@router.post("/holds", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_hold(
    hold_data: HoldCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Place a checkout hold on a vehicle.

    Returns 409 when the window is already claimed.
    """
    hold = await holds.create_hold(
        db,
        hold_data.vehicle_id,
        hold_data.block_date,
        parse_time(hold_data.start_time),
        parse_time(hold_data.end_time),
        brand_id=hold_data.brand_id
    )
    return BlockResponse.model_validate(hold)


@router.post("/holds/sweep", response_model=SweepResponse)
async def sweep_holds(db: AsyncSession = Depends(get_db)):
    """Delete every expired hold."""
    deleted = await availability_blocks.delete_expired_holds(db)
    return SweepResponse(deleted=deleted)


@router.post("/holds/{hold_id}/convert", response_model=BlockResponse)
async def convert_hold(
    convert_data: HoldConvert,
    hold_id: int = Path(..., description="Hold block ID"),
    db: AsyncSession = Depends(get_db)
):
    """Convert a live hold into a booking block. 404 if the hold is gone."""
    block = await holds.convert_to_booking(db, hold_id, convert_data.booking_id)
    return BlockResponse.model_validate(block)


@router.delete("/holds/{hold_id}", response_model=HoldReleaseResponse)
async def release_hold(
    hold_id: int = Path(..., description="Hold block ID"),
    db: AsyncSession = Depends(get_db)
):
    """Release a hold immediately. Releasing a missing hold is not an error."""
    released = await holds.release(db, hold_id)
    return HoldReleaseResponse(hold_id=hold_id, released=released)


# Blocks

@router.get("/vehicles/{vehicle_id}/blocks", response_model=BlockListResponse)
async def vehicle_blocks(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    block_date: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db)
):
    """All blocks of one vehicle on one date."""
    blocks = await availability_blocks.blocks_for_vehicle_on_date(db, vehicle_id, block_date)
    return BlockListResponse(
        blocks=[BlockResponse.model_validate(b) for b in blocks],
        total=len(blocks)
    )


@router.get("/blocks", response_model=CalendarBlockListResponse)
async def day_blocks(
    block_date: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db)
):
    """Fleet-wide calendar for one date."""
    rows = await availability_blocks.blocks_for_date(db, block_date)
    return CalendarBlockListResponse(
        blocks=[_calendar_entry(block, vehicle) for block, vehicle in rows],
        total=len(rows)
    )


@router.get("/blocks/range", response_model=CalendarBlockListResponse)
async def range_blocks(
    start_date: date = Query(...),
    end_date: date = Query(...),
    vehicle_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Calendar between two dates, inclusive."""
    rows = await availability_blocks.blocks_in_range(db, start_date, end_date, vehicle_id=vehicle_id)
    return CalendarBlockListResponse(
        blocks=[_calendar_entry(block, vehicle) for block, vehicle in rows],
        total=len(rows)
    )


@router.post("/blocks/maintenance", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_block(
    block_data: MaintenanceBlockCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Take a vehicle out of service for a window.

    Returns 422 when the window overlaps an existing block.
    """
    block = await availability_blocks.create_maintenance_block(
        db,
        block_data.vehicle_id,
        block_data.block_date,
        parse_time(block_data.start_time),
        parse_time(block_data.end_time),
        block_data.reason,
        created_by=block_data.created_by
    )
    return BlockResponse.model_validate(block)


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: int = Path(..., description="Block ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a hold, maintenance or buffer block. Booking blocks are refused."""
    await availability_blocks.delete_block(db, block_id)


@router.delete("/bookings/{booking_id}/blocks", response_model=BookingBlocksDeletedResponse)
async def delete_booking_blocks(
    booking_id: int = Path(..., description="Booking ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a booking's block together with its buffers."""
    deleted = await availability_blocks.delete_blocks_for_booking(db, booking_id)
    return BookingBlocksDeletedResponse(booking_id=booking_id, deleted=deleted)
