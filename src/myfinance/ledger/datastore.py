#!/usr/bin/env python3
"""
CSV Ledger Store

One tabular ledger per CSV file, read and written with pandas. Every cell
is kept as text on disk so tickers with leading zeros and large yen amounts
round-trip exactly; typed conversion happens in the record models.
"""

import logging
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

FrameTransform = Callable[[pd.DataFrame], pd.DataFrame]


def _to_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class CsvLedgerStore:
    """
    Append-only CSV table with a duplicate scan at write time.

    The scan and the append run under one lock, so concurrent writers in
    the same process cannot both insert the same row. Writers in separate
    processes are not coordinated.
    """

    def __init__(self, path: Path, columns: list[str]):
        self.path = path
        self.columns = columns
        self._lock = threading.Lock()

    def exists(self) -> bool:
        return self.path.exists()

    def load_frame(self) -> pd.DataFrame:
        """
        Load the table.

        Returns:
            DataFrame of string cells with the store's columns (empty if the file is missing)
        """
        if not self.path.exists():
            return pd.DataFrame(columns=self.columns, dtype=str)

        try:
            frame = pd.read_csv(self.path, dtype=str, keep_default_na=False, encoding="utf-8")
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=self.columns, dtype=str)

        for column in self.columns:
            if column not in frame.columns:
                frame[column] = ""
        return frame[self.columns].copy()

    def save_frame(self, frame: pd.DataFrame) -> None:
        """Replace the file atomically with the given table."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        os.close(fd)
        try:
            frame.to_csv(tmp_name, index=False, encoding="utf-8")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def rows(self) -> list[dict[str, Any]]:
        """All rows as dicts, with empty cells as None."""
        frame = self.load_frame()
        return [
            {column: (value if value != "" else None) for column, value in record.items()}
            for record in frame.to_dict("records")
        ]

    def item_count(self) -> int:
        return len(self.load_frame())

    def last_modified(self) -> datetime | None:
        if not self.path.exists():
            return None
        return datetime.fromtimestamp(self.path.stat().st_mtime)

    def _contains(self, frame: pd.DataFrame, row: dict[str, str], key_columns: list[str], window: int | None) -> bool:
        if frame.empty:
            return False
        scanned = frame.tail(window) if window else frame
        mask = pd.Series(True, index=scanned.index)
        for column in key_columns:
            mask &= scanned[column] == row[column]
        return bool(mask.any())

    def append(
        self,
        row: dict[str, Any],
        key_columns: list[str] | None = None,
        window: int | None = None,
        transform: FrameTransform | None = None,
    ) -> bool:
        """
        Append one row unless a row with the same key already exists.

        Args:
            row: Values by column name
            key_columns: Columns forming the duplicate key; None skips the scan
            window: Only the last `window` rows are scanned (None scans all)
            transform: Applied to the whole table before it is written
                (used to recompute derived columns)

        Returns:
            True if the row was written, False if it was a duplicate
        """
        cells = {column: _to_cell(row.get(column)) for column in self.columns}

        with self._lock:
            frame = self.load_frame()
            if key_columns and self._contains(frame, cells, key_columns, window):
                return False

            new_row = pd.DataFrame([cells], columns=self.columns)
            frame = new_row if frame.empty else pd.concat([frame, new_row], ignore_index=True)
            if transform is not None:
                frame = transform(frame)
            self.save_frame(frame)

        logger.debug(f"Appended row to {self.path.name}: {cells}")
        return True
