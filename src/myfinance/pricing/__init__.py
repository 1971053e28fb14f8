"""
Price Enrichment Package

Historical unit-price lookup, page extraction, request throttling and unit
quantity derivation.
"""

from .client import PriceClient, PriceLookup, PriceSourceError, PriceStatus
from .extraction import extract_latest_price, extract_price_for_date, parse_nav_value
from .quantity import FUND_UNITS_BASIS, calculate_quantity
from .throttle import RequestThrottle

__all__ = [
    "FUND_UNITS_BASIS",
    "PriceClient",
    "PriceLookup",
    "PriceSourceError",
    "PriceStatus",
    "RequestThrottle",
    "calculate_quantity",
    "extract_latest_price",
    "extract_price_for_date",
    "parse_nav_value",
]
