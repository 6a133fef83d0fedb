"""
Package type catalog model.

A sender may buy packaging at parcel creation; its fixed dimensions are
then used for pricing instead of carrier measurements.
"""

from sqlalchemy import Column, Integer, String, Float, Numeric, Boolean
from backend.app.db.session import Base


class PackageType(Base):
    __tablename__ = "package_types"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False)  # Box, Envelope, ...
    size = Column(String(20), nullable=False)  # S, M, L, ...

    # Fixed outer dimensions in centimeters
    dimension_x = Column(Float, nullable=False)
    dimension_y = Column(Float, nullable=False)
    dimension_z = Column(Float, nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<PackageType(id={self.id}, name='{self.name}', price={self.price})>"
