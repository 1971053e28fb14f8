#!/usr/bin/env python3
"""
Price Enrichment Client

Looks up the unit price (NAV) a fund was bought at by fetching the fund's
historical price page around the trade date.

A lookup has three possible results:
- FOUND: a price for the trade date was on the page
- NOT_YET_AVAILABLE: the page answered but has no price for that date yet,
  or the request timed out or returned a non-200 status; retry next run
- PriceSourceError: any other transport failure, raised to the caller
"""

import logging
from dataclasses import dataclass
from enum import Enum

import requests

from ..core.config import PriceSourceConfig
from ..core.dates import FinancialDate
from .extraction import extract_latest_price, extract_price_for_date
from .throttle import RequestThrottle

logger = logging.getLogger(__name__)


class PriceSourceError(Exception):
    """The price source could not be reached for a reason other than a timeout."""


class PriceStatus(Enum):
    FOUND = "found"
    NOT_YET_AVAILABLE = "not_yet_available"


@dataclass(frozen=True)
class PriceLookup:
    """Result of one price lookup."""

    status: PriceStatus
    price: int | None = None
    reason: str | None = None
    as_of: FinancialDate | None = None

    @classmethod
    def found(cls, price: int, as_of: FinancialDate) -> "PriceLookup":
        return cls(status=PriceStatus.FOUND, price=price, as_of=as_of)

    @classmethod
    def not_yet_available(cls, reason: str) -> "PriceLookup":
        return cls(status=PriceStatus.NOT_YET_AVAILABLE, reason=reason)

    @property
    def is_found(self) -> bool:
        return self.status == PriceStatus.FOUND


class PriceClient:
    """
    Fetches historical price pages over a shared requests.Session.

    Every fetch goes through one RequestThrottle, so consecutive requests
    are spaced by at least `request_delay` seconds.
    """

    def __init__(
        self,
        config: PriceSourceConfig,
        session: requests.Session | None = None,
        throttle: RequestThrottle | None = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})
        self.throttle = throttle or RequestThrottle(config.request_delay)

    def build_history_url(self, ticker: str) -> str:
        return f"{self.config.base_url}{ticker}{self.config.history_suffix}"

    def build_history_params(self, target: FinancialDate) -> dict[str, str]:
        """Query window: lookback_days before the target date up to the target date."""
        return {
            "from": target.minus_days(self.config.lookback_days).to_compact_string(),
            "to": target.to_compact_string(),
            "timeFrame": "d",
        }

    def _fetch_history(self, ticker: str, target: FinancialDate) -> str | PriceLookup:
        """Page HTML, or a NOT_YET_AVAILABLE lookup when the source did not answer usefully."""
        url = self.build_history_url(ticker)
        params = self.build_history_params(target)

        self.throttle.wait()
        logger.info(f"Fetching price history for {ticker} ({params['from']}-{params['to']})")

        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.Timeout:
            logger.warning(f"Price request for {ticker} timed out after {self.config.timeout}s")
            return PriceLookup.not_yet_available("timeout")
        except requests.RequestException as e:
            raise PriceSourceError(f"Price request for {ticker} failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Price source returned HTTP {response.status_code} for {ticker}: {url}")
            return PriceLookup.not_yet_available(f"http_{response.status_code}")

        response.encoding = "utf-8"
        return response.text

    def lookup_price(self, ticker: str, target_date: FinancialDate) -> PriceLookup:
        """
        Price published for `target_date`.

        Raises:
            PriceSourceError: On transport failures other than timeouts
        """
        page = self._fetch_history(ticker, target_date)
        if isinstance(page, PriceLookup):
            return page

        price = extract_price_for_date(
            page,
            target_date,
            min_price=self.config.min_plausible_price,
            max_price=self.config.max_plausible_price,
            window=self.config.proximity_window,
        )
        if price is None:
            logger.warning(f"Price for {ticker} on {target_date} not published yet")
            return PriceLookup.not_yet_available("not_published")

        logger.info(f"Price for {ticker} on {target_date}: {price:,}")
        return PriceLookup.found(price, target_date)

    def latest_price(self, ticker: str, as_of: FinancialDate | None = None) -> PriceLookup:
        """
        Most recent price on or before `as_of` (default: today) within the lookback window.

        Raises:
            PriceSourceError: On transport failures other than timeouts
        """
        as_of = as_of or FinancialDate.today()
        page = self._fetch_history(ticker, as_of)
        if isinstance(page, PriceLookup):
            return page

        latest = extract_latest_price(page)
        if latest is None:
            logger.warning(f"No dated price rows for {ticker} up to {as_of}")
            return PriceLookup.not_yet_available("no_rows")

        row_date, price = latest
        return PriceLookup.found(price, row_date)

    def close(self) -> None:
        self.session.close()
