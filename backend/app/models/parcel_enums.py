"""
Parcel-related enumerations.
"""

import enum


class ParcelStatus(str, enum.Enum):
    """
    Parcel status enumeration.

    Status flow:
        PENDING → AWAITING_PICKUP → IN_TRANSIT → DELIVERED
        A parcel that is never accepted stays PENDING.
    """
    PENDING = "Pending"
    AWAITING_PICKUP = "Awaiting Pickup"
    IN_TRANSIT = "In Transit"
    DELIVERED = "Delivered"


class AssignmentStatus(str, enum.Enum):
    """Carrier assignment status. ACCEPTED is terminal for the record."""
    PENDING = "Pending"
    ACCEPTED = "Accepted"


class ItemType(str, enum.Enum):
    """Kinds of goods a sender may ship."""
    FOOD = "Food"
    FROZEN = "Frozen"
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    DOCUMENTS = "Documents"
    OTHER = "Other"


class ParcelLocationType(str, enum.Enum):
    ORIGIN = "Origin"
    DESTINATION = "Destination"


class ShipmentEventType:
    """Event type labels written to the shipment history."""
    CREATED = "Created"
    ACCEPTED = "Accepted"
    PICKED_UP = "Picked Up"
    WAREHOUSE_ARRIVAL = "Warehouse Arrival"
