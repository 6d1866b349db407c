"""
Driver and duty log database models.

Inputs to driver qualification and hours-of-service compliance checks.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Float, Enum, ForeignKey
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base
from tourfleet.app.models.enums import DutyActivity, enum_values


class Driver(Base):
    """Driver model with qualification file dates."""
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    employment_status = Column(String(50), default="active", nullable=False)

    # Qualification file
    medical_cert_expiry = Column(Date, nullable=True)
    license_expiry = Column(Date, nullable=True)
    mvr_check_date = Column(Date, nullable=True)
    annual_review_date = Column(Date, nullable=True)
    road_test_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.name}')>"


class DriverDutyLog(Base):
    """Hours a driver spent in one duty activity on one date."""
    __tablename__ = "driver_duty_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)
    duty_date = Column(Date, nullable=False, index=True)
    activity = Column(
        Enum(DutyActivity, name="duty_activity", values_callable=enum_values),
        nullable=False
    )
    hours = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<DriverDutyLog(driver_id={self.driver_id}, date={self.duty_date}, {self.activity.value}={self.hours}h)>"
