"""Google Sheets adapter package for etisync."""

from __future__ import annotations

from .client import call_with_retry, open_spreadsheet
from .tabular import GSheetsTabularStore, parse_cell, render_cell
from .unit_of_work import GSheetsWorkbookUnitOfWork

__all__ = [
    "GSheetsTabularStore",
    "GSheetsWorkbookUnitOfWork",
    "call_with_retry",
    "open_spreadsheet",
    "parse_cell",
    "render_cell",
]
