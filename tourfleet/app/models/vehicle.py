"""
Vehicle database model.

Tour vehicles with seating capacity, brand scope and compliance dates.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Enum, JSON
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base
from tourfleet.app.models.enums import VehicleStatus, BOOKABLE_VEHICLE_STATUSES, enum_values


class Vehicle(Base):
    """
    Vehicle model.

    A vehicle is offered to every brand (available_to_all_brands) or to the
    brands listed in brand_ids. Vehicles referenced by availability blocks
    are archived, never deleted.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    vehicle_type = Column(String(50), nullable=True)  # e.g., "sprinter", "suv"
    license_plate = Column(String(20), unique=True, nullable=False, index=True)

    # Capacity (guests, excluding driver)
    capacity = Column(Integer, nullable=False, index=True)

    # Status
    status = Column(
        Enum(VehicleStatus, name="vehicle_status", values_callable=enum_values),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
        index=True
    )

    # Brand scope
    available_to_all_brands = Column(Boolean, default=True, nullable=False)
    brand_ids = Column(JSON, nullable=False, default=list)

    # Compliance
    registration_expiry = Column(Date, nullable=True)
    insurance_expiry = Column(Date, nullable=True)
    last_dot_inspection = Column(Date, nullable=True)

    # Archival replaces deletion
    archived_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def name(self) -> str:
        return f"{self.make} {self.model}"

    @property
    def is_bookable(self) -> bool:
        return self.archived_at is None and self.status in BOOKABLE_VEHICLE_STATUSES

    def serves_brand(self, brand_id) -> bool:
        """True when brand_id is omitted, or the vehicle is scoped to it."""
        if brand_id is None or self.available_to_all_brands:
            return True
        return brand_id in (self.brand_ids or [])

    def __repr__(self):
        return f"<Vehicle(id={self.id}, name='{self.name}', capacity={self.capacity})>"
