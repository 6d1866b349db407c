"""
Pricing Rule database model.

Defines base tour prices per vehicle type and tour duration.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base


class PricingRule(Base):
    """
    Pricing Rule model.

    A base price for a vehicle type and tour length, scaled by
    weekend_multiplier on the configured weekend days. The newest rule in
    effect wins.
    """
    __tablename__ = "pricing_rules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Rule details
    rule_name = Column(String(100), nullable=False)
    vehicle_type = Column(String(50), nullable=False, index=True)
    duration_hours = Column(Float, nullable=False)
    base_price = Column(Float, nullable=False)
    weekend_multiplier = Column(Float, default=1.0, nullable=False)

    # Validity
    effective_from = Column(DateTime(timezone=True), nullable=False)
    effective_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PricingRule(id={self.id}, name='{self.rule_name}', base_price={self.base_price})>"
