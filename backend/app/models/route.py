"""
Route and route stop database models.

Each parcel gets one route: origin, a few random warehouses, destination.
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.route_enums import RouteStatus, StopStatus


class Route(Base):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), unique=True, nullable=False, index=True)
    status = Column(Enum(RouteStatus), default=RouteStatus.PLANNING, nullable=False)
    route_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Route(id={self.id}, parcel_id={self.parcel_id}, status='{self.status.value}')>"


class RouteStop(Base):
    """
    Planned checkpoint of a route.

    Sequence 1 is the origin, the last sequence is the destination,
    anything in between is a warehouse (warehouse_id set).
    """
    __tablename__ = "route_stops"
    __table_args__ = (
        UniqueConstraint("route_id", "sequence", name="uq_route_stops_route_sequence"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False, index=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True)

    sequence = Column(Integer, nullable=False)
    stop_status = Column(Enum(StopStatus), default=StopStatus.PENDING, nullable=False)

    eta = Column(DateTime(timezone=True), nullable=False)
    arrived_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<RouteStop(id={self.id}, route_id={self.route_id}, seq={self.sequence}, status='{self.stop_status.value}')>"
