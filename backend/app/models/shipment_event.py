"""
Shipment event database model.

Append-only tracking history of a parcel. Rows are never updated or deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from backend.app.db.session import Base


class ShipmentEvent(Base):
    __tablename__ = "shipment_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=False, index=True)

    event_type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False)
    description = Column(String(500), nullable=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)

    # Set by the application with microsecond precision; history is ordered by (event_time, id)
    event_time = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<ShipmentEvent(id={self.id}, parcel_id={self.parcel_id}, type='{self.event_type}')>"
