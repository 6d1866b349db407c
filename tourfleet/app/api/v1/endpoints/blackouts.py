"""
Blackout Date API Endpoints.

Closes calendar dates for every brand or for a single brand.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from tourfleet.app.core.exceptions import ResourceNotFoundError
from tourfleet.app.db.session import get_db
from tourfleet.app.models.blackout_date import BlackoutDate
from tourfleet.app.schemas.blackout import BlackoutCreate, BlackoutResponse, BlackoutListResponse
from tourfleet.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/blackouts", tags=["Blackout Dates"])


@router.post("", response_model=BlackoutResponse, status_code=status.HTTP_201_CREATED)
async def create_blackout(
    blackout_data: BlackoutCreate,
    db: AsyncSession = Depends(get_db)
):
    """Close a date. Existing bookings on it are left alone."""
    blackout = BlackoutDate(**blackout_data.model_dump(), is_active=True)

    db.add(blackout)
    await db.flush()
    await db.refresh(blackout)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.BLACKOUT_CREATED,
        entity_type="blackout",
        entity_id=blackout.id,
        metadata={
            "blackout_date": blackout.blackout_date.isoformat(),
            "brand_id": blackout.brand_id
        }
    )

    return BlackoutResponse.model_validate(blackout)


@router.get("", response_model=BlackoutListResponse)
async def list_blackouts(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """List active blackouts, optionally within a date range."""
    query = select(BlackoutDate).where(BlackoutDate.is_active.is_(True))
    if start_date is not None:
        query = query.where(BlackoutDate.blackout_date >= start_date)
    if end_date is not None:
        query = query.where(BlackoutDate.blackout_date <= end_date)

    result = await db.execute(query.order_by(BlackoutDate.blackout_date, BlackoutDate.id))
    blackouts = result.scalars().all()

    return BlackoutListResponse(
        blackouts=[BlackoutResponse.model_validate(b) for b in blackouts],
        total=len(blackouts)
    )


@router.delete("/{blackout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blackout(
    blackout_id: int = Path(..., description="Blackout ID"),
    db: AsyncSession = Depends(get_db)
):
    """Reopen a date."""
    blackout = await db.get(BlackoutDate, blackout_id)
    if blackout is None:
        raise ResourceNotFoundError("Blackout date", blackout_id)

    await db.delete(blackout)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.BLACKOUT_DELETED,
        entity_type="blackout",
        entity_id=blackout_id
    )
