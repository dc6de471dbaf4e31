from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from googleapiclient.errors import HttpError

from b2bsync.adapters.sheets import (
    SHEET_COLUMNS,
    CsvRecordSource,
    GoogleSheetsRecordSource,
    SheetsReadError,
    record_from_cells,
)
from b2bsync.config.sheets import SheetsConfig
from b2bsync.domain.errors import RemoteFailure
from b2bsync.domain.rows import normalize_records

if TYPE_CHECKING:
    from pathlib import Path

HEADER = ",".join(f"Column {index}" for index in range(len(SHEET_COLUMNS)))


class _Response(dict[str, str]):
    status = 403
    reason = "Forbidden"


class _FakeValues:
    def __init__(self, payload: dict[str, object] | Exception) -> None:
        self.payload = payload
        self.requests: list[dict[str, str]] = []

    def values(self) -> _FakeValues:
        return self

    def get(self, **kwargs: str) -> _FakeValues:
        self.requests.append(kwargs)
        return self

    def execute(self) -> dict[str, object]:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class _FakeService:
    def __init__(self, values: _FakeValues) -> None:
        self._values = values

    def spreadsheets(self) -> _FakeValues:
        return self._values


def _sheet_source(values: _FakeValues) -> GoogleSheetsRecordSource:
    config = SheetsConfig(sheet_id="sheet-123", credentials_path="unused.json", sheet_name="B2B")
    return GoogleSheetsRecordSource(config=config, service_factory=lambda _: _FakeService(values))


def test_record_from_cells_pads_short_rows_and_ignores_extra_cells() -> None:
    short = record_from_cells(["COMP001", "Acme Corp", 1])
    long = record_from_cells([f"v{index}" for index in range(30)])

    assert short["company_key"] == "COMP001"
    assert short["location_key"] == "1"
    assert short["location_name"] is None
    assert set(short) == set(SHEET_COLUMNS)
    assert long["location_name"] == "v24"
    assert len(long) == 25


def test_csv_source_skips_header(tmp_path: Path) -> None:
    path = tmp_path / "companies.csv"
    row = [""] * len(SHEET_COLUMNS)
    row[:3] = ["COMP001", "Acme Corp", "1"]
    row[10:13] = ["jane@acme.test", "Jane", "Doe"]
    path.write_text(f"{HEADER}\n{','.join(row)}\n", encoding="utf-8")

    records = CsvRecordSource(path)()

    assert len(records) == 1
    (parsed,) = normalize_records(records).rows
    assert parsed.company_key == "COMP001"
    assert parsed.customer_email == "jane@acme.test"
    assert parsed.source_row == 2


def test_csv_source_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    assert CsvRecordSource(path)() == []


def test_google_source_reads_data_range() -> None:
    values = _FakeValues({"values": [["COMP001", "Acme Corp", "1"], ["COMP002"]]})

    records = _sheet_source(values)()

    assert values.requests == [{"spreadsheetId": "sheet-123", "range": "B2B!A2:Y"}]
    assert [record["company_key"] for record in records] == ["COMP001", "COMP002"]
    assert records[1]["company_name"] is None


def test_google_source_without_values_returns_no_records() -> None:
    assert _sheet_source(_FakeValues({"range": "B2B!A2:Y"}))() == []


def test_google_source_wraps_http_errors() -> None:
    error = HttpError(_Response(), b'{"error": {"message": "The caller does not have permission"}}')

    with pytest.raises(SheetsReadError) as excinfo:
        _sheet_source(_FakeValues(error))()

    assert isinstance(excinfo.value, RemoteFailure)
    assert "sheet-123" in str(excinfo.value)
