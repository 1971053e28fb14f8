#!/usr/bin/env python3
"""Tests for the price enrichment client."""

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from myfinance.core.config import PriceSourceConfig
from myfinance.core.dates import FinancialDate
from myfinance.pricing import PriceClient, PriceSourceError, PriceStatus
from tests.fixtures.messages import price_history_html

TARGET = FinancialDate(date=date(2025, 1, 15))


def make_response(status_code=200, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def config():
    return PriceSourceConfig(request_delay=0)


@pytest.fixture
def client(config, session):
    return PriceClient(config, session=session)


@pytest.mark.pricing
class TestRequestShape:
    def test_user_agent_header(self, client, session, config):
        assert session.headers["User-Agent"] == config.user_agent

    def test_history_url_and_params(self, client):
        assert client.build_history_url("0331418A") == "https://finance.yahoo.co.jp/quote/0331418A/history"
        assert client.build_history_params(TARGET) == {"from": "20250108", "to": "20250115", "timeFrame": "d"}

    def test_get_called_with_window_and_timeout(self, client, session):
        session.get.return_value = make_response(text=price_history_html([("2025/01/15", "29,850")]))

        client.lookup_price("X1", TARGET)

        session.get.assert_called_once_with(
            "https://finance.yahoo.co.jp/quote/X1/history",
            params={"from": "20250108", "to": "20250115", "timeFrame": "d"},
            timeout=30,
        )

    def test_every_fetch_is_throttled(self, config, session):
        throttle = MagicMock()
        session.get.return_value = make_response(text=price_history_html([]))
        client = PriceClient(config, session=session, throttle=throttle)

        client.lookup_price("X1", TARGET)
        client.latest_price("X1", TARGET)

        assert throttle.wait.call_count == 2


@pytest.mark.pricing
class TestLookupPrice:
    def test_found(self, client, session):
        session.get.return_value = make_response(text=price_history_html([("2025/01/15", "29,850")]))

        lookup = client.lookup_price("X1", TARGET)

        assert lookup.is_found
        assert lookup.price == 29850
        assert lookup.as_of == TARGET

    def test_not_published(self, client, session):
        session.get.return_value = make_response(text=price_history_html([("2025/01/14", "29,700")]))

        lookup = client.lookup_price("X1", TARGET)

        assert lookup.status == PriceStatus.NOT_YET_AVAILABLE
        assert lookup.reason == "not_published"
        assert lookup.price is None

    def test_non_200_is_not_yet_available(self, client, session):
        session.get.return_value = make_response(status_code=404)
        lookup = client.lookup_price("X1", TARGET)
        assert (lookup.status, lookup.reason) == (PriceStatus.NOT_YET_AVAILABLE, "http_404")

    def test_timeout_is_not_yet_available(self, client, session):
        session.get.side_effect = requests.Timeout("slow")
        lookup = client.lookup_price("X1", TARGET)
        assert (lookup.status, lookup.reason) == (PriceStatus.NOT_YET_AVAILABLE, "timeout")

    def test_other_transport_failure_raises(self, client, session):
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(PriceSourceError, match="X1"):
            client.lookup_price("X1", TARGET)


@pytest.mark.pricing
class TestLatestPrice:
    def test_latest_row(self, client, session):
        session.get.return_value = make_response(
            text=price_history_html([("2025/01/14", "29,700"), ("2025/01/15", "29,850")])
        )
        lookup = client.latest_price("X1", TARGET)
        assert lookup.price == 29850
        assert lookup.as_of == TARGET

    def test_no_rows(self, client, session):
        session.get.return_value = make_response(text=price_history_html([]))
        assert client.latest_price("X1", TARGET).reason == "no_rows"

    def test_close(self, client, session):
        client.close()
        session.close.assert_called_once()
