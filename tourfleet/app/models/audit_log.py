"""
Audit Log Database Model.

Tracks scheduling actions that change who owns vehicle time.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - HOLD_CONVERTED / BOOKING_BLOCKS_DELETED
    - MAINTENANCE_BLOCK_CREATED / BLOCK_DELETED
    - VEHICLE_CREATED / VEHICLE_UPDATED / VEHICLE_ARCHIVED
    - BLACKOUT_CREATED / BLACKOUT_DELETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
