"""
Province reference data used by the pricing engine.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint
from backend.app.db.session import Base


class Province(Base):
    """
    Province with its own base price and delivery days.

    Used as the pricing fallback when no directed province pair exists.
    """
    __tablename__ = "provinces"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    base_price = Column(Numeric(12, 2), nullable=False)
    delivery_days = Column(Integer, nullable=False, default=3)

    def __repr__(self):
        return f"<Province(id={self.id}, name='{self.name}', base_price={self.base_price})>"


class ProvinceMapping(Base):
    """Directed (origin, destination) pair with a flat base price and delivery days."""
    __tablename__ = "province_mappings"
    __table_args__ = (
        UniqueConstraint("origin_province_id", "dest_province_id", name="uq_province_mappings_pair"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    origin_province_id = Column(Integer, ForeignKey("provinces.id"), nullable=False, index=True)
    dest_province_id = Column(Integer, ForeignKey("provinces.id"), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    delivery_days = Column(Integer, nullable=False)

    def __repr__(self):
        return (
            f"<ProvinceMapping(origin={self.origin_province_id}, dest={self.dest_province_id}, "
            f"price={self.price}, days={self.delivery_days})>"
        )
