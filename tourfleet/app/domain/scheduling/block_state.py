"""
Availability block lifecycle states.

A block is exactly one of Hold, Booking, Maintenance or Buffer. Each state
carries only the data that is legal for it, so a booking with an expiry or
a hold with a booking id cannot be built. Transitions return a new state.

    none -> Hold -> Booking
    Hold -> (released / expired, block deleted)
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from tourfleet.app.models.enums import BlockType


class IllegalTransitionError(ValueError):
    """Raised when a transition is applied to a state that does not allow it."""


@dataclass(frozen=True)
class HoldState:
    expires_at: datetime
    block_type = BlockType.HOLD

    def is_expired(self, now: datetime) -> bool:
        expires_at = self.expires_at
        # SQLite hands back naive UTC timestamps
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return expires_at <= now


@dataclass(frozen=True)
class BookingState:
    booking_id: int
    block_type = BlockType.BOOKING


@dataclass(frozen=True)
class MaintenanceState:
    reason: Optional[str] = None
    block_type = BlockType.MAINTENANCE


@dataclass(frozen=True)
class BufferState:
    # Buffers are deleted together with the booking they surround
    booking_id: int
    block_type = BlockType.BUFFER


BlockState = Union[HoldState, BookingState, MaintenanceState, BufferState]


def confirm_hold(state: BlockState, booking_id: int) -> BookingState:
    """Hold -> Booking. Clears the expiry and attaches the booking."""
    if not isinstance(state, HoldState):
        raise IllegalTransitionError(f"Cannot confirm a {state.block_type.value} block")
    return BookingState(booking_id=booking_id)


def state_columns(state: BlockState) -> dict:
    """Column values that persist a state."""
    columns = {
        "block_type": state.block_type,
        "expires_at": None,
        "booking_id": None,
    }
    if isinstance(state, HoldState):
        columns["expires_at"] = state.expires_at
    elif isinstance(state, (BookingState, BufferState)):
        columns["booking_id"] = state.booking_id
    elif isinstance(state, MaintenanceState):
        columns["notes"] = state.reason
    return columns


def state_from_columns(
    block_type: BlockType,
    expires_at: Optional[datetime],
    booking_id: Optional[int],
    notes: Optional[str]
) -> BlockState:
    """Rebuild a state from stored columns."""
    if block_type == BlockType.HOLD:
        return HoldState(expires_at=expires_at)
    if block_type == BlockType.BOOKING:
        return BookingState(booking_id=booking_id)
    if block_type == BlockType.BUFFER:
        return BufferState(booking_id=booking_id)
    return MaintenanceState(reason=notes)
