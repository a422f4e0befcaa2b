"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LogLevel(StrEnum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ReviewStatus(StrEnum):
    PENDING = "Pending"
