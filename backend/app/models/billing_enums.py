"""
Balance ledger enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """
    Ledger transaction type.

    TOPUP is the only credit; every other type debits the sender.
    """
    TOPUP = "Topup"  # Simulated bank top-up
    PACKAGE = "Package"  # Packaging bought at parcel creation
    SERVICE = "Service"  # Optional services chosen at parcel creation
    PARCEL = "Parcel"  # Delivery price charged at pickup

    @property
    def is_credit(self) -> bool:
        return self is TransactionType.TOPUP


class TransactionStatus(str, enum.Enum):
    """Transaction status enumeration."""
    COMPLETED = "Completed"
