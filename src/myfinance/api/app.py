#!/usr/bin/env python3
"""
HTTP Facade

Read-only query surface over the ledger for the dashboard, plus the manual
bank balance adjustment.

    GET  /?action=records     fund/trade ledger rows
    GET  /?action=portfolio   per-ticker valuation
    GET  /?action=bank        bank balance and movements
    GET  /?action=health      liveness (default)
    POST /  {"action": "adjust_balance", "amount": 123456}

Every response is {"status": "ok"|"error", "data"?, "message"?, "timestamp"}.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .. import __version__
from ..core.notifications import LogNotifier, Notifier
from ..ledger import LedgerService

logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Client error answered with HTTP 400."""


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _ok(data: Any = None, message: str | None = None, **extra: Any):
    body: dict[str, Any] = {"status": "ok"}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update(extra)
    body["timestamp"] = _timestamp()
    return jsonify(body)


def _error(message: str, status_code: int):
    return jsonify({"status": "error", "message": message, "timestamp": _timestamp()}), status_code


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise InvalidRequest("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidRequest("amount must be a number") from e
    if not amount.is_finite():
        raise InvalidRequest("amount must be a finite number")
    if amount != amount.to_integral_value():
        raise InvalidRequest("amount must be a whole number of yen")
    return int(amount)


def create_app(ledger: LedgerService, notifier: Notifier | None = None) -> Flask:
    """Build the Flask app serving `ledger`."""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    notifier = notifier or LogNotifier()

    def get_records() -> Any:
        return [record.to_dict() for record in ledger.list_fund_records()]

    def get_portfolio() -> Any:
        return ledger.portfolio_summary()

    def get_bank() -> Any:
        return {
            **ledger.current_bank_balance(),
            "records": [record.to_dict() for record in ledger.list_bank_records()],
        }

    get_actions = {
        "records": get_records,
        "portfolio": get_portfolio,
        "bank": get_bank,
    }

    @app.errorhandler(InvalidRequest)
    def handle_invalid_request(e: InvalidRequest):
        logger.info(f"Rejected request: {e}")
        return _error(str(e), 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("API error")
        notifier.notify("API error", {"path": request.path, "error": f"{type(e).__name__}: {e}"})
        return _error(str(e), 500)

    @app.route("/", methods=["GET"])
    def query():
        action = request.args.get("action", "health")
        if action == "health":
            return _ok(message="MyFinance backend is running", version=__version__)

        handler = get_actions.get(action)
        if handler is None:
            raise InvalidRequest(f"Unknown action: {action}")

        logger.info(f"{action} API request")
        return _ok(data=handler())

    @app.route("/", methods=["POST"])
    def command():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")

        action = payload.get("action")
        if action != "adjust_balance":
            raise InvalidRequest(f"Unknown action: {action}")
        if "amount" not in payload:
            raise InvalidRequest("amount is required")

        target = _parse_amount(payload["amount"])
        record = ledger.adjust_bank_balance(target)
        if record is None:
            return _ok(data={"balance": target, "adjustment": None}, message="Balance already matches")
        return _ok(
            data={"balance": target, "adjustment": record.to_dict()},
            message=f"Balance adjusted by {record.signed_amount:+,}",
        )

    return app
