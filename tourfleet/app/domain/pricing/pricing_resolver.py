"""
Pricing Rule Resolver.

Responsible for finding the pricing rule that applies to a tour.
Priority: newest active rule for the vehicle type and tour length that is
in effect on the tour date.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from tourfleet.app.models.pricing_rule import PricingRule


class PricingResolver:

    @staticmethod
    async def resolve_rule(
        db: AsyncSession,
        vehicle_type: str,
        duration_hours: float,
        on_date: date
    ) -> Optional[PricingRule]:
        """
        Find the rule pricing a tour, or None when nothing matches.

        A rule is in effect on a date when it starts on or before the end
        of that day and has not ended before its start.
        """
        day_start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
        day_end = datetime.combine(on_date, time.max, tzinfo=timezone.utc)

        query = select(PricingRule).where(
            PricingRule.vehicle_type == vehicle_type,
            PricingRule.duration_hours == duration_hours,
            PricingRule.is_active == True,
            PricingRule.effective_from <= day_end,
            (PricingRule.effective_until.is_(None) | (PricingRule.effective_until >= day_start))
        ).order_by(PricingRule.effective_from.desc(), PricingRule.id.desc()).limit(1)

        result = await db.execute(query)
        return result.scalar_one_or_none()
