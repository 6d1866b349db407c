"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from tourfleet.app.api.v1.endpoints import (
    availability, blocks, bookings,
    fleet, blackouts,
    pricing, compliance
)

router = APIRouter()

# Scheduling core
router.include_router(availability.router)
router.include_router(blocks.router)

# Booking workflow
router.include_router(bookings.router)

# Fleet administration
router.include_router(fleet.router)
router.include_router(blackouts.router)

# Collaborators
router.include_router(pricing.router)
router.include_router(compliance.router)
