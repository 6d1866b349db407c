"""
Compliance Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import date
from typing import Optional, List

from tourfleet.app.models.enums import ComplianceSeverity


class ViolationResponse(BaseModel):
    type: str
    severity: ComplianceSeverity
    message: str
    regulation: Optional[str] = None
    expiry_date: Optional[date] = None
    days_overdue: Optional[int] = None

    class Config:
        from_attributes = True


class ComplianceResponse(BaseModel):
    """Schema for a driver or vehicle compliance check."""
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    is_compliant: bool
    can_proceed: bool
    allows_admin_override: bool
    violations: List[ViolationResponse]
    warnings: List[ViolationResponse]

    class Config:
        from_attributes = True
