"""
Vehicle availability block database model.

Enforces that no two blocks on one vehicle and date overlap. On PostgreSQL
this is a range exclusion constraint; every insert additionally runs its
overlap check inside a slot lock (see services.availability_blocks).
"""

from sqlalchemy import (
    Column, Integer, String, Text, Date, Time, DateTime, Enum, ForeignKey,
    CheckConstraint, Index, DDL, event
)
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base
from tourfleet.app.models.enums import BlockType, enum_values
from tourfleet.app.domain.scheduling.block_state import BlockState, state_columns, state_from_columns
from tourfleet.app.domain.scheduling.time_range import TimeRange, format_time

EXCLUSION_CONSTRAINT_NAME = "no_overlapping_vehicle_blocks"


class AvailabilityBlock(Base):
    """
    Availability block model.

    A half-open [start_time, end_time) claim on a vehicle for one date.
    The lifecycle state lives in block_type plus the columns that state
    allows: expires_at for holds, booking_id for bookings and buffers,
    notes as the maintenance reason.
    """
    __tablename__ = "vehicle_availability_blocks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Owning vehicle (archived, never deleted, while blocks reference it)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    # Interval (local wall clock, same calendar date)
    block_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Lifecycle state
    block_type = Column(
        Enum(BlockType, name="block_type", values_callable=enum_values),
        nullable=False,
        index=True
    )
    booking_id = Column(Integer, nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Context
    brand_id = Column(Integer, nullable=True)
    created_by = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="valid_time_range"),
        CheckConstraint(
            "(block_type = 'hold') = (expires_at IS NOT NULL)",
            name="expiry_only_on_holds"
        ),
        CheckConstraint(
            "(block_type IN ('booking', 'buffer')) = (booking_id IS NOT NULL)",
            name="booking_id_only_on_booking_blocks"
        ),
        Index('ix_vehicle_blocks_vehicle_date', 'vehicle_id', 'block_date', 'start_time'),
    )

    @property
    def state(self) -> BlockState:
        return state_from_columns(self.block_type, self.expires_at, self.booking_id, self.notes)

    def apply_state(self, state: BlockState) -> None:
        for column, value in state_columns(state).items():
            setattr(self, column, value)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.block_date, self.start_time, self.end_time)

    def __repr__(self):
        return (
            f"<AvailabilityBlock(id={self.id}, vehicle_id={self.vehicle_id}, "
            f"date={self.block_date}, {format_time(self.start_time)}-{format_time(self.end_time)}, "
            f"type='{self.block_type.value}')>"
        )


# PostgreSQL range exclusion: same vehicle, overlapping [start, end) on the
# same date. SQLSTATE 23P01 on violation.
event.listen(
    AvailabilityBlock.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql")
)
event.listen(
    AvailabilityBlock.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE vehicle_availability_blocks ADD CONSTRAINT {EXCLUSION_CONSTRAINT_NAME} "
        "EXCLUDE USING gist ("
        "vehicle_id WITH =, "
        "tsrange(block_date + start_time, block_date + end_time, '[)') WITH &&"
        ")"
    ).execute_if(dialect="postgresql")
)
