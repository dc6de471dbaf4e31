"""Read raw company records from a Google Sheet."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from b2bsync.config.sheets import SheetsConfig, get_sheets_config
from b2bsync.domain.errors import RemoteFailure

from .layout import record_from_cells

if TYPE_CHECKING:
    from b2bsync.domain.ports import RawRecord, RecordSource

log = getLogger(__name__)


class SheetsReadError(RemoteFailure):
    """The Sheets API refused or failed the values request."""


def build_sheets_service(config: SheetsConfig) -> Any:
    credentials = service_account.Credentials.from_service_account_file(
        config.credentials_path, scopes=list(config.scopes)
    )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


@dataclass(slots=True)
class GoogleSheetsRecordSource:
    """``RecordSource`` over the data rows (row 2 onwards) of one worksheet."""

    config: SheetsConfig = field(default_factory=get_sheets_config)
    service_factory: Any = field(default=build_sheets_service)

    def __call__(self) -> list[RawRecord]:
        service = self.service_factory(self.config)
        log.info("Reading %s from sheet %s", self.config.data_range, self.config.sheet_id)
        try:
            payload = (
                service.spreadsheets()
                .values()
                .get(spreadsheetId=self.config.sheet_id, range=self.config.data_range)
                .execute()
            )
        except HttpError as exc:
            raise SheetsReadError(f"Failed to read sheet {self.config.sheet_id}: {exc}") from exc

        rows = cast(list[list[object]], payload.get("values", []))
        log.info("Read %s rows from %s", len(rows), self.config.sheet_name)
        return [record_from_cells(row) for row in rows]


if TYPE_CHECKING:
    _source_check: RecordSource = GoogleSheetsRecordSource()
