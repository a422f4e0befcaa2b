"""Authorised gspread client and rate-limit aware call helper."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, TypeVar

import gspread
from google.oauth2.service_account import Credentials

if TYPE_CHECKING:
    from collections.abc import Callable

    from etisync.config import GoogleSheetsConfig

log = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def open_spreadsheet(config: GoogleSheetsConfig) -> gspread.Spreadsheet:
    """Authorise with the service account file and open the configured spreadsheet."""

    credentials = Credentials.from_service_account_file(
        str(config.service_account_file), scopes=list(config.scopes)
    )
    client = gspread.authorize(credentials)
    spreadsheet = client.open_by_key(config.spreadsheet_key)
    log.info("Opened spreadsheet %s", spreadsheet.title)
    return spreadsheet


T = TypeVar("T")


def call_with_retry(
    func: Callable[..., T],
    *args: object,
    max_retries: int = 5,
    base_delay: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: object,
) -> T:
    """Call a gspread method, backing off exponentially while the API answers 429."""

    for attempt in range(max_retries):
        try:
            return func(*args, **kwargs)
        except gspread.exceptions.APIError as exc:
            if exc.response.status_code != RATE_LIMIT_STATUS or attempt == max_retries - 1:
                raise
            delay = base_delay * (2**attempt)
            log.warning("Google Sheets rate limit hit; retrying in %.0fs", delay)
            sleep(delay)
    raise RuntimeError("Rate limit retries exhausted")
