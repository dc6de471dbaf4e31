"""Google Sheets source configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, require_env_vars

DEFAULT_SHEET_NAME = "Sheet1"
SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"


@dataclass(frozen=True)
class SheetsConfig:
    sheet_id: str
    credentials_path: str
    sheet_name: str = DEFAULT_SHEET_NAME
    scopes: tuple[str, ...] = (SHEETS_READONLY_SCOPE,)

    @property
    def data_range(self) -> str:
        # Row 1 is the header; the layout spans columns A through Y.
        return f"{self.sheet_name}!A2:Y"


def get_sheets_config() -> SheetsConfig:
    values = require_env_vars(("GOOGLE_SHEET_ID", "GOOGLE_SERVICE_ACCOUNT_CREDENTIALS"))
    return SheetsConfig(
        sheet_id=values["GOOGLE_SHEET_ID"],
        credentials_path=values["GOOGLE_SERVICE_ACCOUNT_CREDENTIALS"],
        sheet_name=optional_env("GOOGLE_SHEET_NAME", DEFAULT_SHEET_NAME),
    )
