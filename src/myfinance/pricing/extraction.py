#!/usr/bin/env python3
"""
Price Page Extraction

Reads a unit price (NAV) for a given date out of a historical price page.
The page layout is not under our control, so extraction runs ordered
strategies with fallback:

1. Table row: a <tr> whose cells contain a rendition of the target date;
   the cell right after the date cell holds the price. A matching row whose
   price cell is blank or "-" means the price is not published yet.
2. Loose proximity: in the raw HTML, the first run of four or more digits or
   commas within a window after the date, accepted only inside a
   plausibility band.

Neither strategy matching means the price has not been published yet.
"""

import logging
import re

from bs4 import BeautifulSoup, Tag

from ..core.dates import FinancialDate

logger = logging.getLogger(__name__)

_LEADING_INTEGER = re.compile(r"^-?\d+")
# Digits glued to a date separator are part of a date, not a price.
_PRICE_TOKEN = r"(?<![\d,])([0-9,]{4,})(?![\d,/\-年月日])"

DEFAULT_MIN_PRICE = 100
DEFAULT_MAX_PRICE = 999999
DEFAULT_PROXIMITY_WINDOW = 200


def parse_nav_value(text: str | None) -> int | None:
    """
    Parse a price cell such as "24,563" or "24,563円" into integer yen.

    Commas and blanks are removed and the leading integer is read, so any
    fractional part or trailing unit is ignored.
    """
    if not text:
        return None
    cleaned = re.sub(r"[,\s]", "", text)
    match = _LEADING_INTEGER.match(cleaned)
    if not match:
        return None
    return int(match.group())


def date_renditions(target: FinancialDate) -> list[str]:
    """Ways the page may print a date: 2025/01/15, 2025年1月15日, 2025年01月15日."""
    renditions = [
        target.to_slash_string(),
        target.to_kanji_string(),
        target.to_kanji_string(zero_pad=True),
    ]
    return list(dict.fromkeys(renditions))


def _row_cells(row: Tag) -> list[str]:
    return [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]


def _price_from_table(soup: BeautifulSoup, renditions: list[str]) -> tuple[bool, int | None]:
    """(row found, price). A found row whose price cell does not parse yields (True, None)."""
    rows = soup.find_all("tr")
    found = False
    for rendition in renditions:
        for row in rows:
            cells = _row_cells(row)
            for index, cell in enumerate(cells[:-1]):
                if rendition in cell:
                    found = True
                    price = parse_nav_value(cells[index + 1])
                    if price and price > 0:
                        return True, price
                    break
    return found, None


def _price_from_proximity(html: str, renditions: list[str], min_price: int, max_price: int, window: int) -> int | None:
    for rendition in renditions:
        pattern = re.compile(re.escape(rendition) + rf"[\s\S]{{0,{window}}}?{_PRICE_TOKEN}")
        for match in pattern.finditer(html):
            price = parse_nav_value(match.group(1))
            if price is not None and min_price <= price <= max_price:
                return price
    return None


def extract_price_for_date(
    html: str,
    target: FinancialDate,
    min_price: int = DEFAULT_MIN_PRICE,
    max_price: int = DEFAULT_MAX_PRICE,
    window: int = DEFAULT_PROXIMITY_WINDOW,
) -> int | None:
    """
    Extract the price published for `target`.

    Args:
        html: Page HTML
        target: Trade date whose price is wanted
        min_price: Lower bound of the plausibility band (proximity strategy only)
        max_price: Upper bound of the plausibility band (proximity strategy only)
        window: Characters after the date searched by the proximity strategy

    Returns:
        Price in integer yen, or None when the page has no price for that date
    """
    renditions = date_renditions(target)
    soup = BeautifulSoup(html, "lxml")

    row_found, price = _price_from_table(soup, renditions)
    if price is not None:
        logger.debug(f"Price for {target} found in table row: {price}")
        return price
    if row_found:
        logger.warning(f"Row for {target} has no price yet")
        return None

    price = _price_from_proximity(html, renditions, min_price, max_price, window)
    if price is not None:
        logger.info(f"Price for {target} found by proximity fallback: {price}")
        return price

    logger.warning(f"No price for {target} in page")
    return None


def extract_latest_price(html: str) -> tuple[FinancialDate, int] | None:
    """
    Most recent dated price row on a history page.

    Returns:
        (date, price) of the newest row, or None when no row parses
    """
    soup = BeautifulSoup(html, "lxml")
    latest: tuple[FinancialDate, int] | None = None

    for row in soup.find_all("tr"):
        cells = _row_cells(row)
        for index, cell in enumerate(cells[:-1]):
            row_date = FinancialDate.from_japanese(cell)
            if row_date is None:
                continue
            price = parse_nav_value(cells[index + 1])
            if price and price > 0 and (latest is None or row_date > latest[0]):
                latest = (row_date, price)
            break

    return latest
