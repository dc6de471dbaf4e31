"""Record sources reading the companies sheet."""

from __future__ import annotations

from .csv_source import CsvRecordSource
from .google import GoogleSheetsRecordSource, SheetsReadError, build_sheets_service
from .layout import SHEET_COLUMNS, record_from_cells

__all__ = [
    "SHEET_COLUMNS",
    "CsvRecordSource",
    "GoogleSheetsRecordSource",
    "SheetsReadError",
    "build_sheets_service",
    "record_from_cells",
]
