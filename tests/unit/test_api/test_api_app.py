#!/usr/bin/env python3
"""Tests for the Flask query facade."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from myfinance import __version__
from myfinance.api import create_app
from myfinance.core.config import LedgerConfig
from myfinance.core.dates import FinancialDate
from myfinance.core.models import BankLedgerRecord, LedgerRecord
from myfinance.ledger import LedgerService
from tests.fixtures.messages import RecordingNotifier


@pytest.fixture
def ledger(temp_dir):
    return LedgerService(LedgerConfig(ledger_dir=temp_dir / "ledger"), initial_balance=100000, fund_tickers={"X1"})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(ledger, notifier):
    return create_app(ledger, notifier).test_client()


def seed(ledger):
    ledger.append_fund_record(
        LedgerRecord(FinancialDate.from_japanese("2025/01/15"), "Fund A Display", 33333, Decimal(29850), 11167, "X1")
    )
    ledger.append_bank_record(BankLedgerRecord(FinancialDate.from_japanese("2025/01/20"), "振込入金", deposit=50000))


@pytest.mark.unit
class TestQueries:
    def test_health_is_default(self, client):
        response = client.get("/")

        body = response.get_json()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["message"] == "MyFinance backend is running"
        assert body["version"] == __version__
        assert body["timestamp"].endswith("Z")

    def test_records(self, client, ledger):
        seed(ledger)

        body = client.get("/?action=records").get_json()

        assert body["data"] == [
            {
                "date": "2025/01/15",
                "name": "Fund A Display",
                "amount": 33333,
                "unitPrice": 29850,
                "quantity": 11167,
                "ticker": "X1",
            }
        ]

    def test_records_empty(self, client):
        assert client.get("/?action=records").get_json()["data"] == []

    def test_portfolio_without_prices(self, client, ledger):
        seed(ledger)

        holding = client.get("/?action=portfolio").get_json()["data"][0]

        assert holding["ticker"] == "X1"
        assert holding["total_invested"] == 33333
        assert holding["current_value"] is None

    def test_bank(self, client, ledger):
        seed(ledger)

        data = client.get("/?action=bank").get_json()["data"]

        assert data["balance"] == 150000
        assert data["last_updated"] == "2025/01/20"
        assert data["records"][0]["runningBalance"] == 150000

    def test_japanese_is_not_escaped(self, client, ledger):
        seed(ledger)
        assert "振込入金".encode() in client.get("/?action=bank").data

    def test_unknown_action(self, client):
        response = client.get("/?action=nope")
        assert response.status_code == 400
        assert response.get_json() == {
            "status": "error",
            "message": "Unknown action: nope",
            "timestamp": response.get_json()["timestamp"],
        }


@pytest.mark.unit
class TestAdjustBalance:
    def test_adjusts(self, client, ledger):
        response = client.post("/", json={"action": "adjust_balance", "amount": 160000})

        body = response.get_json()
        assert response.status_code == 200
        assert body["message"] == "Balance adjusted by +60,000"
        assert body["data"]["balance"] == 160000
        assert body["data"]["adjustment"]["deposit"] == 60000
        assert ledger.current_bank_balance()["balance"] == 160000

    def test_string_amount(self, client, ledger):
        client.post("/", json={"action": "adjust_balance", "amount": " 90000 "})
        assert ledger.current_bank_balance()["balance"] == 90000

    def test_already_matches(self, client):
        body = client.post("/", json={"action": "adjust_balance", "amount": 100000}).get_json()
        assert body["message"] == "Balance already matches"
        assert body["data"] == {"balance": 100000, "adjustment": None}

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"action": "adjust_balance"}, "amount is required"),
            ({"action": "adjust_balance", "amount": 1.5}, "whole number"),
            ({"action": "adjust_balance", "amount": "abc"}, "must be a number"),
            ({"action": "adjust_balance", "amount": True}, "must be a number"),
            ({"action": "adjust_balance", "amount": "NaN"}, "finite"),
            ({"action": "delete_everything"}, "Unknown action"),
            (["adjust_balance"], "JSON object"),
        ],
    )
    def test_rejected(self, client, ledger, payload, message):
        response = client.post("/", json=payload)

        assert response.status_code == 400
        assert message in response.get_json()["message"]
        assert ledger.list_bank_records() == []

    def test_not_json(self, client):
        response = client.post("/", data="amount=1", content_type="application/x-www-form-urlencoded")
        assert response.status_code == 400


@pytest.mark.unit
class TestErrors:
    def test_unknown_path(self, client):
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.get_json()["status"] == "error"

    def test_method_not_allowed(self, client):
        assert client.put("/").status_code == 405

    def test_unexpected_error_is_notified(self, notifier):
        ledger = MagicMock()
        ledger.list_fund_records.side_effect = RuntimeError("disk unavailable")
        client = create_app(ledger, notifier).test_client()

        response = client.get("/?action=records")

        assert response.status_code == 500
        assert response.get_json()["message"] == "disk unavailable"
        assert notifier.alerts[0][0] == "API error"
        assert "RuntimeError" in notifier.alerts[0][1]["error"]
