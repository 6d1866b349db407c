"""
Compliance Service (Domain Logic).

Checks driver qualification files, vehicle paperwork and hours-of-service
limits before a driver and vehicle are committed to a tour.

Rules:
1. Any critical violation blocks the operation (can_proceed is False).
2. A block may be overridden by an admin only if none of its violations
   is in NON_OVERRIDABLE_VIOLATIONS. HOS results are never overridable.
3. Dates inside the warning window are reported as warnings, not violations.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.models.driver import Driver, DriverDutyLog
from tourfleet.app.models.enums import ComplianceSeverity, DutyActivity, VehicleStatus
from tourfleet.app.models.vehicle import Vehicle

NON_OVERRIDABLE_VIOLATIONS = frozenset({
    "medical_cert_expired",
    "license_expired",
    "hos_daily_driving_exceeded",
    "hos_daily_on_duty_exceeded",
    "hos_weekly_exceeded",
    "vehicle_inactive",
    "driver_inactive",
})


@dataclass
class ComplianceViolation:
    type: str
    severity: ComplianceSeverity
    message: str
    regulation: Optional[str] = None
    expiry_date: Optional[date] = None
    days_overdue: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "regulation": self.regulation,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "days_overdue": self.days_overdue,
        }


@dataclass
class ComplianceCheckResult:
    is_compliant: bool
    can_proceed: bool
    violations: List[ComplianceViolation] = field(default_factory=list)
    warnings: List[ComplianceViolation] = field(default_factory=list)
    allows_admin_override: bool = False
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None

    @property
    def primary_violation(self) -> Optional[ComplianceViolation]:
        return self.violations[0] if self.violations else None


@dataclass
class AssignmentComplianceResult:
    can_proceed: bool
    driver: ComplianceCheckResult
    vehicle: ComplianceCheckResult
    hos: ComplianceCheckResult
    allows_admin_override: bool = False

    @property
    def all_violations(self) -> List[ComplianceViolation]:
        return self.driver.violations + self.vehicle.violations + self.hos.violations

    @property
    def all_warnings(self) -> List[ComplianceViolation]:
        return self.driver.warnings + self.vehicle.warnings + self.hos.warnings

    @property
    def primary_violation(self) -> Optional[ComplianceViolation]:
        violations = self.all_violations
        return violations[0] if violations else None


def _one_year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # Feb 29
        return day.replace(year=day.year - 1, day=28)


def _summarize(
    violations: List[ComplianceViolation],
    warnings: List[ComplianceViolation],
    subject_id: Optional[int] = None,
    subject_name: Optional[str] = None,
    overridable: bool = True
) -> ComplianceCheckResult:
    can_proceed = not any(v.severity == ComplianceSeverity.CRITICAL for v in violations)
    allows_override = overridable and not any(v.type in NON_OVERRIDABLE_VIOLATIONS for v in violations)
    return ComplianceCheckResult(
        is_compliant=not violations,
        can_proceed=can_proceed,
        violations=violations,
        warnings=warnings,
        allows_admin_override=not can_proceed and allows_override,
        subject_id=subject_id,
        subject_name=subject_name,
    )


def _check_expiry(
    violations: List[ComplianceViolation],
    warnings: List[ComplianceViolation],
    expiry: Optional[date],
    today: date,
    kind: str,
    label: str,
    regulation: Optional[str] = None
) -> None:
    """Missing or expired is critical; expiring inside the warning window is a warning."""
    if expiry is None:
        violations.append(ComplianceViolation(
            type=f"{kind}_missing",
            severity=ComplianceSeverity.CRITICAL,
            message=f"{label} not on file",
            regulation=regulation,
        ))
    elif expiry < today:
        violations.append(ComplianceViolation(
            type=f"{kind}_expired",
            severity=ComplianceSeverity.CRITICAL,
            message=f"{label} expired on {expiry.isoformat()}",
            regulation=regulation,
            expiry_date=expiry,
            days_overdue=(today - expiry).days,
        ))
    elif expiry < today + timedelta(days=settings.compliance_warning_days):
        warnings.append(ComplianceViolation(
            type=f"{kind}_expired",
            severity=ComplianceSeverity.WARNING,
            message=f"{label} expires on {expiry.isoformat()}",
            expiry_date=expiry,
        ))


def _check_annual(
    violations: List[ComplianceViolation],
    last_done: Optional[date],
    today: date,
    kind: str,
    label: str,
    severity: ComplianceSeverity,
    regulation: str
) -> None:
    """Records that must be renewed at least once a year."""
    if last_done is None:
        violations.append(ComplianceViolation(
            type=f"{kind}_missing",
            severity=severity,
            message=f"{label} not on file",
            regulation=regulation,
        ))
    elif last_done < _one_year_before(today):
        violations.append(ComplianceViolation(
            type=f"{kind}_expired",
            severity=severity,
            message=f"{label} expired (last: {last_done.isoformat()})",
            regulation=regulation,
            expiry_date=last_done,
        ))


class ComplianceService:

    @staticmethod
    async def check_driver_compliance(
        db: AsyncSession,
        driver_id: int,
        today: Optional[date] = None
    ) -> ComplianceCheckResult:
        """
        Check a driver's qualification file.

        A missing driver is reported as a critical, non-overridable
        driver_inactive violation rather than raised.
        """
        today = today or date.today()
        driver = await db.get(Driver, driver_id)

        if driver is None:
            return _summarize(
                [ComplianceViolation(
                    type="driver_inactive",
                    severity=ComplianceSeverity.CRITICAL,
                    message="Driver not found or not active",
                )],
                [],
                subject_id=driver_id,
            )

        violations: List[ComplianceViolation] = []
        warnings: List[ComplianceViolation] = []

        if not driver.is_active or driver.employment_status != "active":
            violations.append(ComplianceViolation(
                type="driver_inactive",
                severity=ComplianceSeverity.CRITICAL,
                message="Driver is not active",
            ))

        _check_expiry(violations, warnings, driver.medical_cert_expiry, today,
                      "medical_cert", "Medical certificate", "49 CFR 391.41")
        _check_expiry(violations, warnings, driver.license_expiry, today,
                      "license", "Driver's license", "49 CFR 391.11")
        _check_annual(violations, driver.mvr_check_date, today,
                      "mvr", "Motor Vehicle Record (MVR) check", ComplianceSeverity.MAJOR, "49 CFR 391.25")
        _check_annual(violations, driver.annual_review_date, today,
                      "annual_review", "Annual driver review", ComplianceSeverity.MAJOR, "49 CFR 391.25")

        if driver.road_test_date is None:
            violations.append(ComplianceViolation(
                type="road_test_missing",
                severity=ComplianceSeverity.CRITICAL,
                message="Road test certificate not on file",
                regulation="49 CFR 391.31",
            ))

        return _summarize(violations, warnings, subject_id=driver.id, subject_name=driver.name)

    @staticmethod
    async def check_vehicle_compliance(
        db: AsyncSession,
        vehicle_id: int,
        today: Optional[date] = None
    ) -> ComplianceCheckResult:
        """Check a vehicle's registration, insurance and annual DOT inspection."""
        today = today or date.today()
        vehicle = await db.get(Vehicle, vehicle_id)

        if vehicle is None:
            return _summarize(
                [ComplianceViolation(
                    type="vehicle_inactive",
                    severity=ComplianceSeverity.CRITICAL,
                    message="Vehicle not found",
                )],
                [],
                subject_id=vehicle_id,
            )

        violations: List[ComplianceViolation] = []
        warnings: List[ComplianceViolation] = []

        if vehicle.archived_at is not None or vehicle.status == VehicleStatus.OUT_OF_SERVICE:
            violations.append(ComplianceViolation(
                type="vehicle_inactive",
                severity=ComplianceSeverity.CRITICAL,
                message="Vehicle is marked as inactive",
            ))

        _check_expiry(violations, warnings, vehicle.registration_expiry, today,
                      "registration", "Vehicle registration")
        _check_expiry(violations, warnings, vehicle.insurance_expiry, today,
                      "insurance", "Vehicle insurance", "49 CFR 387.33")
        _check_annual(violations, vehicle.last_dot_inspection, today,
                      "dot_inspection", "DOT inspection", ComplianceSeverity.CRITICAL, "49 CFR 396.17")

        return _summarize(violations, warnings, subject_id=vehicle.id, subject_name=vehicle.name)

    @staticmethod
    async def check_hos_compliance(
        db: AsyncSession,
        driver_id: int,
        tour_date: date
    ) -> ComplianceCheckResult:
        """Hours-of-service limits for the tour date and the 7 days before it."""
        on_duty_activities = (DutyActivity.DRIVING, DutyActivity.ON_DUTY)

        daily = await db.execute(
            select(
                func.coalesce(func.sum(case(
                    (DriverDutyLog.activity == DutyActivity.DRIVING, DriverDutyLog.hours),
                    else_=0.0
                )), 0.0),
                func.coalesce(func.sum(case(
                    (DriverDutyLog.activity.in_(on_duty_activities), DriverDutyLog.hours),
                    else_=0.0
                )), 0.0),
            ).where(
                DriverDutyLog.driver_id == driver_id,
                DriverDutyLog.duty_date == tour_date
            )
        )
        driving_hours, on_duty_hours = daily.one()

        weekly = await db.execute(
            select(func.coalesce(func.sum(DriverDutyLog.hours), 0.0)).where(
                DriverDutyLog.driver_id == driver_id,
                DriverDutyLog.activity.in_(on_duty_activities),
                DriverDutyLog.duty_date >= tour_date - timedelta(days=7),
                DriverDutyLog.duty_date <= tour_date
            )
        )
        weekly_hours = weekly.scalar()

        violations: List[ComplianceViolation] = []
        warnings: List[ComplianceViolation] = []

        for kind, label, hours, limit, margin in (
            ("hos_daily_driving_exceeded", "daily driving", driving_hours,
             settings.hos_max_driving_hours, 0.5),
            ("hos_daily_on_duty_exceeded", "daily on-duty", on_duty_hours,
             settings.hos_max_on_duty_hours, 1),
            ("hos_weekly_exceeded", "weekly hours", weekly_hours,
             settings.hos_max_weekly_hours, 5),
        ):
            hours = float(hours or 0)
            if hours >= limit:
                violations.append(ComplianceViolation(
                    type=kind,
                    severity=ComplianceSeverity.CRITICAL,
                    message=f"{label.capitalize()} limit exceeded ({hours:.1f} of {limit:g} hours)",
                    regulation="49 CFR 395.5",
                ))
            elif hours >= limit - margin:
                warnings.append(ComplianceViolation(
                    type=kind,
                    severity=ComplianceSeverity.WARNING,
                    message=f"Approaching {label} limit ({hours:.1f} of {limit:g} hours)",
                ))

        return _summarize(violations, warnings, subject_id=driver_id, overridable=False)

    @staticmethod
    async def check_assignment_compliance(
        db: AsyncSession,
        driver_id: int,
        vehicle_id: int,
        tour_date: date,
        today: Optional[date] = None
    ) -> AssignmentComplianceResult:
        """Driver, vehicle and HOS checks combined; all must pass."""
        driver = await ComplianceService.check_driver_compliance(db, driver_id, today=today)
        vehicle = await ComplianceService.check_vehicle_compliance(db, vehicle_id, today=today)
        hos = await ComplianceService.check_hos_compliance(db, driver_id, tour_date)

        can_proceed = driver.can_proceed and vehicle.can_proceed and hos.can_proceed
        return AssignmentComplianceResult(
            can_proceed=can_proceed,
            driver=driver,
            vehicle=vehicle,
            hos=hos,
            allows_admin_override=(
                not can_proceed
                and all(
                    r.can_proceed or r.allows_admin_override
                    for r in (driver, vehicle, hos)
                )
            ),
        )
