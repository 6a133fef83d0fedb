"""
Shared schema types.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import PlainSerializer


def format_money(value) -> str:
    """Fixed-point currency string with exactly 2 decimals: Decimal("216") -> "216.00"."""
    return str(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# Money always leaves the API as a 2-decimal string
Money = Annotated[Decimal, PlainSerializer(format_money, return_type=str)]
