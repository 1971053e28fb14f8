#!/usr/bin/env python3
"""Tests for the pandas-backed CSV ledger store."""

import pytest

from myfinance.ledger import CsvLedgerStore

COLUMNS = ["date", "name", "amount", "ticker"]
KEY = ["date", "name", "amount"]


@pytest.fixture
def store(temp_dir):
    return CsvLedgerStore(temp_dir / "ledger" / "fund_log.csv", COLUMNS)


def row(name="Fund A Display", amount=33333, day="2025/01/15", ticker="03311187"):
    return {"date": day, "name": name, "amount": amount, "ticker": ticker}


@pytest.mark.ledger
class TestCsvLedgerStore:
    def test_missing_file_is_empty(self, store):
        assert not store.exists()
        assert store.item_count() == 0
        assert list(store.load_frame().columns) == COLUMNS
        assert store.last_modified() is None

    def test_append_creates_directory_and_file(self, store):
        assert store.append(row(), key_columns=KEY)
        assert store.exists()
        assert store.last_modified() is not None

    def test_cells_round_trip_as_text(self, store):
        store.append(row())
        store.append({"date": "2025/01/16", "name": "Sony", "amount": -300000, "ticker": None})

        rows = store.rows()

        assert rows[0] == {"date": "2025/01/15", "name": "Fund A Display", "amount": "33333", "ticker": "03311187"}
        assert rows[1]["amount"] == "-300000"
        assert rows[1]["ticker"] is None

    def test_duplicate_key_rejected(self, store):
        assert store.append(row(), key_columns=KEY)
        assert not store.append(row(ticker="OTHER"), key_columns=KEY)
        assert store.item_count() == 1

    def test_no_key_columns_skips_scan(self, store):
        store.append(row())
        assert store.append(row())
        assert store.item_count() == 2

    def test_window_limits_duplicate_scan(self, store):
        store.append(row(name="A"), key_columns=KEY)
        store.append(row(name="B"), key_columns=KEY)
        store.append(row(name="C"), key_columns=KEY)

        assert not store.append(row(name="C"), key_columns=KEY, window=2)
        assert store.append(row(name="A"), key_columns=KEY, window=2)
        assert store.item_count() == 4

    def test_transform_applied_before_save(self, store):
        def upper_names(frame):
            frame["name"] = frame["name"].str.upper()
            return frame

        store.append(row(name="fund a"), transform=upper_names)

        assert store.rows()[0]["name"] == "FUND A"

    def test_missing_columns_are_added(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("date,name,amount\n2025/01/15,Fund A,100\n", encoding="utf-8")

        frame = store.load_frame()

        assert list(frame.columns) == COLUMNS
        assert frame.iloc[0]["ticker"] == ""

    def test_empty_file(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("", encoding="utf-8")
        assert store.item_count() == 0

    def test_no_temporary_files_left(self, store):
        store.append(row())
        assert [path.name for path in store.path.parent.iterdir()] == ["fund_log.csv"]
