"""Logging setup for the etisync CLI."""

from __future__ import annotations

import logging

# Transport chatter from the Sheets client; only shown with --verbose.
NOISY_LOGGERS = ("urllib3", "google.auth", "gspread", "alembic.runtime.migration")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for workflow runs.

    Workflow events are mirrored to the log as ``[script] ACTION ROW n details``;
    the HTTP and migration loggers stay at WARNING unless ``level`` is DEBUG.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
