"""
Audit logging service for scheduling actions.

Provides a central record of changes to vehicle time and fleet data.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from tourfleet.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Availability blocks
    HOLD_CONVERTED = "HOLD_CONVERTED"
    BOOKING_BLOCKS_DELETED = "BOOKING_BLOCKS_DELETED"
    MAINTENANCE_BLOCK_CREATED = "MAINTENANCE_BLOCK_CREATED"
    BLOCK_DELETED = "BLOCK_DELETED"

    # Fleet
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_ARCHIVED = "VEHICLE_ARCHIVED"

    # Calendar rules
    BLACKOUT_CREATED = "BLACKOUT_CREATED"
    BLACKOUT_DELETED = "BLACKOUT_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log a scheduling event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        entity_type: Kind of record acted upon ("block", "vehicle", ...)
        entity_id: ID of the record acted upon
        actor_id: ID of the staff member performing the action
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_entity_history(
    db: AsyncSession,
    entity_type: str,
    entity_id: int,
    limit: int = 50
) -> List[AuditLog]:
    """Most recent audit entries for one record."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .limit(limit)
    )
    return list(result.scalars().all())
