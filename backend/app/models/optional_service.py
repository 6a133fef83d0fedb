"""
Optional service catalog model (insurance, fragile handling, ...).
"""

from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey
from backend.app.db.session import Base


class OptionalService(Base):
    __tablename__ = "optional_services"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    service_fee = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<OptionalService(id={self.id}, name='{self.name}', fee={self.service_fee})>"


class ParcelService(Base):
    """Optional service chosen for a parcel, with the fee charged at creation."""
    __tablename__ = "parcel_services"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("optional_services.id"), nullable=False)
    service_fee = Column(Numeric(12, 2), nullable=False)
