#!/usr/bin/env python3
"""Tests for the fund purchase parser."""

from datetime import date

import pytest

from myfinance.parsers import FundPurchaseParser
from tests.fixtures.messages import FUND_PURCHASE_BODY, FUND_SALE_BODY, fund_purchase_message, make_message


@pytest.fixture
def parser(fund_mapping):
    return FundPurchaseParser(fund_mapping)


@pytest.mark.parsers
class TestFundPurchaseParser:
    """Test fund purchase parsing."""

    def test_parses_purchase(self, parser):
        message = fund_purchase_message()

        assert parser.matches(message)
        purchase = parser.parse(message)

        assert purchase.occurred_on.date == date(2025, 1, 15)
        assert purchase.amount.to_yen() == 33333
        assert purchase.fund_key == "Fund A"
        assert purchase.ticker == "X1"
        assert purchase.display_name == "Fund A Display"
        assert purchase.source_message is message

    def test_html_only_notice_with_longer_keyword(self, parser):
        html = (
            "<html><body>"
            "<p>約定日：２０２５/０１/１５</p>"
            "<table><tr><td>ファンド名</td><td>Fund A Global</td></tr>"
            "<tr><td>買付金額</td><td>３３，３３３円</td></tr></table>"
            "</body></html>"
        )
        purchase = parser.parse(make_message("約定のお知らせ", html=html))

        assert purchase.ticker == "X2"
        assert purchase.amount.to_yen() == 33333

    def test_does_not_match_unrelated_notice(self, parser):
        assert not parser.matches(make_message("ご利用のお知らせ", "ご利用ありがとうございます。お知らせです。"))

    def test_matches_on_body_keyword(self, parser):
        assert parser.matches(make_message("お取引のお知らせ", FUND_PURCHASE_BODY))

    def test_sale_abstains(self, parser):
        assert parser.parse(make_message("約定のお知らせ", FUND_SALE_BODY)) is None

    def test_missing_amount_abstains(self, parser):
        body = "約定のお知らせです。\n約定日: 2025/01/15\nファンド名: Fund A\n"
        assert parser.parse(make_message("約定のお知らせ", body)) is None

    def test_missing_date_abstains(self, parser):
        body = "約定のお知らせです。\nファンド名: Fund A\n買付金額: 33,333円\n"
        assert parser.parse(make_message("約定のお知らせ", body)) is None

    def test_unknown_fund_abstains(self, parser, caplog):
        body = FUND_PURCHASE_BODY.replace("Fund A", "Fund B")
        assert parser.parse(make_message("約定のお知らせ", body)) is None
        assert "No configured fund keyword" in caplog.text

    def test_empty_body_abstains(self, parser):
        assert parser.parse(make_message("約定のお知らせ")) is None
