"""
Delivery plan catalog model ("Standard", "Fast", ...).
"""

from sqlalchemy import Column, Integer, String, Numeric, Boolean
from backend.app.db.session import Base


class DeliveryPlan(Base):
    """
    Named pricing/speed tier.

    For the "Fast" plan, `fast_delivery_fee` is added to the delivery price
    and `delivery_days_reduction` is taken off the estimated delivery date.
    """
    __tablename__ = "delivery_plans"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    fast_delivery_fee = Column(Numeric(12, 2), nullable=False, default=0)
    delivery_days_reduction = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<DeliveryPlan(id={self.id}, name='{self.name}', fee={self.fast_delivery_fee})>"
