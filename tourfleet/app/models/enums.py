"""
Scheduling enumerations.

Defines vehicle status and availability block types.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """
    Vehicle status enumeration.

    Statuses:
        AVAILABLE: Ready for tours
        IN_USE: Currently out on a tour (still bookable for other times)
        MAINTENANCE: In the shop, not offered for new tours
        OUT_OF_SERVICE: Withdrawn from the fleet
    """
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"


# Statuses the vehicle selector may offer to new requests
BOOKABLE_VEHICLE_STATUSES = (VehicleStatus.AVAILABLE, VehicleStatus.IN_USE)


class BlockType(str, enum.Enum):
    """
    Availability block type enumeration.

    All types compete for the same vehicle time: no two blocks of any
    type may overlap on one vehicle and date.
    """
    HOLD = "hold"  # Short-lived checkout lease, carries an expiry
    BOOKING = "booking"  # Confirmed tour, carries the booking id
    MAINTENANCE = "maintenance"  # Fleet operations, carries a reason
    BUFFER = "buffer"  # Turnaround spacing around a booking


class ComplianceSeverity(str, enum.Enum):
    """Compliance violation severity."""
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    WARNING = "warning"


class DutyActivity(str, enum.Enum):
    """Driver duty log activity types."""
    DRIVING = "driving"
    ON_DUTY = "on_duty"
    OFF_DUTY = "off_duty"


def enum_values(enum_cls) -> list:
    """Persist enum values (not member names) in database columns."""
    return [member.value for member in enum_cls]
