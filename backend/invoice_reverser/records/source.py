"""
RecordSource — the working set of reversible invoices.

Reads the operator's spreadsheet once per stage invocation, skipping the
header row and keeping source row order.  Rows without a relevant number
are dropped.  Duplicate relevant numbers are kept in list_records(); the
lookup maps built from them are last-row-wins.
"""

from __future__ import annotations

import os

from invoice_reverser.core.config import Settings
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.context import InputRecord
from invoice_reverser.pipeline.errors import SourceEmpty, SourceUnavailable
from invoice_reverser.records.sheets import cell, cell_text, load_first_sheet

logger = get_logger(__name__)


class RecordSource:
    """Spreadsheet-backed source of InputRecords."""

    def __init__(
        self,
        path: str,
        *,
        col_trader_invoice_number: int = 0,
        col_relevant_number: int = 1,
        col_device_number: int = 2,
        col_buyer_pin: int = 5,
        col_buyer_name: int = 6,
    ) -> None:
        self.path = path
        self._cols = {
            "trader_system_invoice_number": col_trader_invoice_number,
            "relevant_number": col_relevant_number,
            "device_number": col_device_number,
            "buyer_pin": col_buyer_pin,
            "buyer_name": col_buyer_name,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> RecordSource:
        return cls(
            settings.records_path,
            col_trader_invoice_number=settings.COL_TRADER_INVOICE_NUMBER,
            col_relevant_number=settings.COL_RELEVANT_NUMBER,
            col_device_number=settings.COL_DEVICE_NUMBER,
            col_buyer_pin=settings.COL_BUYER_PIN,
            col_buyer_name=settings.COL_BUYER_NAME,
        )

    def list_records(self) -> list[InputRecord]:
        """
        Every usable row, in row order.

        Raises SourceUnavailable if the file is missing or unreadable and
        SourceEmpty if it holds no row with a relevant number.
        """
        if not os.path.isfile(self.path):
            raise SourceUnavailable(f"Relevant numbers file not found: {self.path}")

        try:
            sheet = load_first_sheet(self.path)
        except Exception as exc:
            raise SourceUnavailable(f"Error reading {os.path.basename(self.path)}: {exc}") from exc

        records = []
        rows = sheet.rows()
        next(rows, None)  # header
        for row in rows:
            values = {
                field: cell_text(cell(row, col))
                for field, col in self._cols.items()
            }
            if not values["relevant_number"]:
                continue
            records.append(InputRecord(**values))

        if not records:
            raise SourceEmpty(f"No relevant numbers found in {os.path.basename(self.path)}")

        logger.debug("Records loaded", path=self.path, count=len(records))
        return records

    def device_map(self) -> dict[str, str]:
        """relevant number → device number, for rows that carry both."""
        return {
            r.relevant_number: r.device_number
            for r in self.list_records()
            if r.device_number
        }

    def buyer_map(self) -> dict[str, InputRecord]:
        """relevant number → full record (buyer metadata lookup)."""
        return {r.relevant_number: r for r in self.list_records()}
