"""
Pricing Service (Domain Logic).

Quotes a tour: base price from the pricing rule (or the configured
fallback), the weekend multiplier on configured weekend days, then
gratuity, taxes and the deposit split. Money is rounded to cents.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.domain.pricing.pricing_resolver import PricingResolver
from tourfleet.app.domain.scheduling.time_range import (
    add_minutes,
    format_time,
    hours_to_minutes,
    parse_date,
    parse_time,
)

logger = logging.getLogger(__name__)


@dataclass
class PricingQuote:
    vehicle_type: str
    base_price: float
    weekend_multiplier_applied: bool
    gratuity: float
    taxes: float
    total_price: float
    deposit_amount: float
    final_payment_amount: float
    pricing_rule_id: Optional[int] = None


def _money(amount: float) -> float:
    return round(amount, 2)


class PricingService:

    @staticmethod
    def is_weekend(tour_date: date) -> bool:
        return tour_date.weekday() in settings.weekend_days

    @staticmethod
    def vehicle_type_for(party_size: int) -> str:
        # Every tour currently runs on the default vehicle type
        return settings.default_vehicle_type

    @staticmethod
    async def calculate_pricing(
        db: AsyncSession,
        tour_date: Union[date, str],
        party_size: int,
        duration_hours: float
    ) -> PricingQuote:
        """
        Price a tour.

        Args:
            db: Database session
            tour_date: Tour date ("YYYY-MM-DD" or date)
            party_size: Number of guests
            duration_hours: Tour length in hours

        Returns:
            PricingQuote with every amount rounded to 2 decimal places
        """
        if not isinstance(tour_date, date):
            tour_date = parse_date(tour_date)

        vehicle_type = PricingService.vehicle_type_for(party_size)
        rule = await PricingResolver.resolve_rule(db, vehicle_type, duration_hours, tour_date)

        if rule is None:
            logger.warning(
                "No pricing rule for %s / %sh on %s, using default base price",
                vehicle_type, duration_hours, tour_date
            )
            base_price = settings.default_base_price
            multiplier = 1.0
        else:
            base_price = rule.base_price
            multiplier = rule.weekend_multiplier or 1.0

        weekend_applied = PricingService.is_weekend(tour_date) and multiplier != 1.0
        if weekend_applied:
            base_price = base_price * multiplier

        base_price = _money(base_price)
        gratuity = _money(base_price * settings.gratuity_rate)
        taxes = _money(base_price * settings.tax_rate)
        total_price = _money(base_price + gratuity + taxes)
        deposit_amount = _money(total_price * settings.deposit_rate)

        return PricingQuote(
            vehicle_type=vehicle_type,
            base_price=base_price,
            weekend_multiplier_applied=weekend_applied,
            gratuity=gratuity,
            taxes=taxes,
            total_price=total_price,
            deposit_amount=deposit_amount,
            final_payment_amount=_money(total_price - deposit_amount),
            pricing_rule_id=rule.id if rule else None,
        )

    @staticmethod
    def calculate_end_time(start_time: str, duration_hours: float) -> str:
        """Wall-clock end of a tour, wrapping past midnight ("20:00" + 6h = "02:00")."""
        end, _ = add_minutes(parse_time(start_time), hours_to_minutes(duration_hours))
        return format_time(end)
