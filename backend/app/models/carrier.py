"""
Carrier database model.

Carriers are independent agents who pick up and deliver parcels.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Carrier(Base):
    """
    Carrier account.

    Only carriers with `is_available` set receive new-parcel broadcasts.
    """
    __tablename__ = "carriers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=False)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Vehicle & employment
    vehicle_info = Column(String(255), nullable=True)
    vehicle_license = Column(String(50), nullable=True)
    employment_type = Column(String(50), nullable=True)

    is_available = Column(Boolean, default=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Carrier(id={self.id}, email='{self.email}', available={self.is_available})>"
