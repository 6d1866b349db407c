"""
Fleet Administration API Endpoints.

Vehicle management. Vehicles are archived, never deleted, so the blocks
that reference them stay intact.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from tourfleet.app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from tourfleet.app.db.session import get_db
from tourfleet.app.models.vehicle import Vehicle
from tourfleet.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from tourfleet.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/fleet", tags=["Fleet"])


async def _get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    db: AsyncSession = Depends(get_db)
):
    """Add a vehicle to the fleet. License plates are unique."""
    new_vehicle = Vehicle(**vehicle_data.model_dump())

    db.add(new_vehicle)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise InvalidRequestError(
            f"Vehicle with license plate '{vehicle_data.license_plate}' already exists",
            details={"license_plate": vehicle_data.license_plate}
        )
    await db.refresh(new_vehicle)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CREATED,
        entity_type="vehicle",
        entity_id=new_vehicle.id,
        metadata={
            "license_plate": new_vehicle.license_plate,
            "capacity": new_vehicle.capacity
        }
    )

    return VehicleResponse.model_validate(new_vehicle)


@router.get("/vehicles", response_model=VehicleListResponse)
async def list_vehicles(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    include_archived: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    """List fleet vehicles, smallest capacity first."""
    filters = [] if include_archived else [Vehicle.archived_at.is_(None)]

    total_result = await db.execute(select(func.count(Vehicle.id)).where(*filters))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        select(Vehicle).where(*filters)
        .order_by(Vehicle.capacity, Vehicle.id)
        .offset(offset).limit(page_size)
    )
    vehicles = result.scalars().all()

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get a vehicle."""
    return VehicleResponse.model_validate(await _get_vehicle(db, vehicle_id))


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Update a vehicle. Only the fields sent are changed."""
    vehicle = await _get_vehicle(db, vehicle_id)

    changes = vehicle_data.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        setattr(vehicle, field_name, value)

    await db.flush()
    await db.refresh(vehicle)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_UPDATED,
        entity_type="vehicle",
        entity_id=vehicle.id,
        metadata={"updated_fields": sorted(changes)}
    )

    return VehicleResponse.model_validate(vehicle)


@router.post("/vehicles/{vehicle_id}/archive", response_model=VehicleResponse)
async def archive_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw a vehicle from selection. Idempotent."""
    vehicle = await _get_vehicle(db, vehicle_id)

    if vehicle.archived_at is None:
        vehicle.archived_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(vehicle)
        await db.commit()

        await log_event(
            db=db,
            action=AuditAction.VEHICLE_ARCHIVED,
            entity_type="vehicle",
            entity_id=vehicle.id
        )

    return VehicleResponse.model_validate(vehicle)
