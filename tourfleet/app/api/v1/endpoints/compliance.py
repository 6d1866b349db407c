"""
Compliance API Endpoints.

Read-only views of driver and vehicle compliance.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.db.session import get_db
from tourfleet.app.domain.compliance.compliance_service import ComplianceService
from tourfleet.app.schemas.compliance import ComplianceResponse

router = APIRouter(prefix="/compliance", tags=["Compliance"])


@router.get("/drivers/{driver_id}", response_model=ComplianceResponse)
async def driver_compliance(
    driver_id: int = Path(..., description="Driver ID"),
    db: AsyncSession = Depends(get_db)
):
    """Driver qualification file check."""
    result = await ComplianceService.check_driver_compliance(db, driver_id)
    return ComplianceResponse.model_validate(result)


@router.get("/vehicles/{vehicle_id}", response_model=ComplianceResponse)
async def vehicle_compliance(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle registration, insurance and inspection check."""
    result = await ComplianceService.check_vehicle_compliance(db, vehicle_id)
    return ComplianceResponse.model_validate(result)
