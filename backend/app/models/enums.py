"""
Caller roles enumeration.

Defines the two kinds of authenticated actors in the marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Caller role enumeration.

    Roles:
        SENDER: Creates parcels and pays for them from an internal balance
        CARRIER: Accepts, measures, transports and delivers parcels
    """
    SENDER = "sender"
    CARRIER = "carrier"
