"""Google Sheets configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .env import require_env_vars

GOOGLE_SHEETS_SCOPES = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
)


@dataclass(frozen=True, slots=True)
class GoogleSheetsConfig:
    spreadsheet_key: str
    service_account_file: Path
    scopes: tuple[str, ...] = field(default_factory=lambda: GOOGLE_SHEETS_SCOPES)


def get_google_sheets_config() -> GoogleSheetsConfig:
    values = require_env_vars(("ETISYNC_SPREADSHEET_KEY", "GOOGLE_SERVICE_ACCOUNT_FILE"))
    return GoogleSheetsConfig(
        spreadsheet_key=values["ETISYNC_SPREADSHEET_KEY"],
        service_account_file=Path(values["GOOGLE_SERVICE_ACCOUNT_FILE"]).expanduser(),
    )
