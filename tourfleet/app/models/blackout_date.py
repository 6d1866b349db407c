"""
Blackout date database model.

Calendar dates on which no tours run, independent of vehicle availability.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime
from sqlalchemy.sql import func
from tourfleet.app.db.session import Base


class BlackoutDate(Base):
    """
    Blackout date model.

    A row with brand_id NULL closes the date for every brand; a brand-scoped
    row closes it only for that brand. The reason is shown to customers
    verbatim.
    """
    __tablename__ = "blackout_dates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    blackout_date = Column(Date, nullable=False, index=True)
    brand_id = Column(Integer, nullable=True, index=True)
    reason = Column(String(255), nullable=True)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<BlackoutDate(id={self.id}, date={self.blackout_date}, brand_id={self.brand_id})>"
