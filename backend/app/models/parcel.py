"""
Parcel database models.

A parcel is a single shipment request from a sender to a receiver.
Weight, dimensions and price stay empty until the carrier measures
the parcel at pickup.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Numeric
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.parcel_enums import ParcelStatus, AssignmentStatus, ItemType, ParcelLocationType


class Parcel(Base):
    """
    Parcel model for the marketplace.

    Money columns:
        package_price: packaging charged at creation (0 with own packaging)
        service_fee: optional services charged at creation
        fast_delivery_fee: plan surcharge, precomputed at creation
        price: delivery price charged at pickup (includes fast_delivery_fee)
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # 12-char [A-Z0-9], globally unique
    tracking_number = Column(String(12), unique=True, nullable=False, index=True)

    # Ownership
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Receiver
    receiver_name = Column(String(200), nullable=False)
    receiver_phone = Column(String(30), nullable=False)

    item_type = Column(Enum(ItemType), nullable=False)

    # Packaging (NULL = sender-supplied packaging)
    selected_package_id = Column(Integer, ForeignKey("package_types.id"), nullable=True)
    package_price = Column(Numeric(12, 2), nullable=False, default=0)

    delivery_plan_id = Column(Integer, ForeignKey("delivery_plans.id"), nullable=True)

    # Physical properties (set at pickup)
    weight = Column(Float, nullable=True)
    dimension_x = Column(Float, nullable=True)
    dimension_y = Column(Float, nullable=True)
    dimension_z = Column(Float, nullable=True)

    # Economics
    price = Column(Numeric(12, 2), nullable=True)
    fast_delivery_fee = Column(Numeric(12, 2), nullable=False, default=0)
    service_fee = Column(Numeric(12, 2), nullable=False, default=0)
    est_delivery_date = Column(DateTime(timezone=True), nullable=True)

    status = Column(Enum(ParcelStatus), default=ParcelStatus.PENDING, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking='{self.tracking_number}', status='{self.status.value}')>"


class ParcelLocation(Base):
    """Origin / destination link between a parcel and a Location."""
    __tablename__ = "parcel_locations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    location_type = Column(Enum(ParcelLocationType), nullable=False)


class ParcelAssignment(Base):
    """
    Carrier assignment for a parcel.

    Created (PENDING, no carrier) when the sender broadcasts the parcel and
    claimed once by a carrier (ACCEPTED). A parcel has at most one
    assignment ever.
    """
    __tablename__ = "parcel_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), unique=True, nullable=False, index=True)
    carrier_id = Column(Integer, ForeignKey("carriers.id"), nullable=True, index=True)
    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.PENDING, nullable=False, index=True)

    assigned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ParcelAssignment(parcel_id={self.parcel_id}, carrier_id={self.carrier_id}, status='{self.status.value}')>"
