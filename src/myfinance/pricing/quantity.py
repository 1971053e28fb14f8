#!/usr/bin/env python3
"""
Unit Quantity Derivation

Investment trusts quote their price per 10,000 units, so a purchase of
`amount` yen at price `price` buys amount / price * 10000 units.
"""

from decimal import Decimal

from ..core.currency import round_half_up

FUND_UNITS_BASIS = 10000


def calculate_quantity(amount: int, price: int | Decimal, basis: int = FUND_UNITS_BASIS) -> int:
    """
    Units bought for `amount` yen at `price`, rounded half up.

    Example:
        calculate_quantity(33333, 29850) -> 11167

    Raises:
        ValueError: If price is not positive
    """
    if price <= 0:
        raise ValueError(f"Price must be positive: {price}")
    return round_half_up(Decimal(amount) * basis / Decimal(price))
