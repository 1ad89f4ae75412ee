"""
Sheet readers — first-sheet row access over xlrd / openpyxl.

.xls files go through xlrd, .xlsx/.xlsm through openpyxl.  Both readers
yield rows as plain lists with empty cells as None.
"""

from __future__ import annotations

import os
from typing import Any, Iterator


class XlrdSheet:
    """Rows of an xlrd sheet; xlrd reports empty cells as ''."""

    def __init__(self, sheet) -> None:
        self._sheet = sheet

    def rows(self) -> Iterator[list[Any]]:
        for r in range(self._sheet.nrows):
            yield [None if v == "" else v for v in self._sheet.row_values(r)]


class OpenpyxlSheet:
    """Rows of an openpyxl worksheet, values only."""

    def __init__(self, ws) -> None:
        self._ws = ws

    def rows(self) -> Iterator[list[Any]]:
        for row in self._ws.iter_rows(values_only=True):
            yield list(row)


def load_first_sheet(path: str) -> XlrdSheet | OpenpyxlSheet:
    """Open the first sheet of an XLS or XLSX workbook."""
    extension = os.path.splitext(path)[1].lower()

    if extension == ".xls":
        import xlrd

        return XlrdSheet(xlrd.open_workbook(path).sheet_by_index(0))

    if extension in (".xlsx", ".xlsm"):
        from openpyxl import load_workbook

        return OpenpyxlSheet(load_workbook(path, data_only=True).worksheets[0])

    raise ValueError(f"Unsupported extension: {extension}")


def cell(row: list[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def cell_text(value: Any) -> str:
    """Render a cell value as stripped text; integral floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
