"""
Location database models.

A Location is a deduplicated postal address shared by user addresses,
parcel endpoints, warehouses and route stops.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Location(Base):
    """
    Postal address, unique by (address, district, subdistrict, province, country).

    Deleted only when no UserLocation, ParcelLocation, Warehouse or
    RouteStop row references it.
    """
    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint(
            "address", "district", "subdistrict", "province", "country",
            name="uq_locations_address_tuple"
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    address = Column(String(500), nullable=False)
    district = Column(String(100), nullable=False)
    subdistrict = Column(String(100), nullable=False)
    province = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False)

    # Geolocation
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Location(id={self.id}, province='{self.province}', address='{self.address}')>"


class UserLocation(Base):
    """A sender's saved address, labelled with a name such as "Home"."""
    __tablename__ = "user_locations"
    __table_args__ = (
        UniqueConstraint("user_id", "location_id", name="uq_user_locations_user_location"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserLocation(id={self.id}, user_id={self.user_id}, location_id={self.location_id})>"
