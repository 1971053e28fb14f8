#!/usr/bin/env python3
"""
Processed Message Store

JSON record of every message whose transaction was written or found to be
a duplicate, keyed by the message's idempotency key. It is the pipeline's
own idempotency record; the mailbox read flag is kept in sync with it but
is not relied upon.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.json_utils import read_json, write_json
from ..core.models import ItemOutcome, RawMessage

logger = logging.getLogger(__name__)


class ProcessedMessageStore:
    """Append-only map of idempotency key -> processing record, persisted as JSON."""

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, Any]] | None = None

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._entries is None:
            if self.path.exists():
                data = read_json(self.path)
                self._entries = dict(data.get("messages", {})) if isinstance(data, dict) else {}
            else:
                self._entries = {}
        return self._entries

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._load()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            return self._load().get(key)

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def record(self, message: RawMessage, source: str, outcome: ItemOutcome) -> None:
        """
        Persist that a message was processed.

        Raises:
            ValueError: If the outcome does not mark a message processed
        """
        if not outcome.marks_processed:
            raise ValueError(f"Outcome {outcome.value} does not mark a message processed")

        key = message.idempotency_key
        with self._lock:
            entries = self._load()
            entries[key] = {
                "key": key,
                "source": source,
                "outcome": outcome.value,
                "processed_at": datetime.now().isoformat(timespec="seconds"),
                "subject": message.subject,
            }
            write_json(self.path, {"messages": entries})
        logger.debug(f"Recorded {key} as {outcome.value}")
