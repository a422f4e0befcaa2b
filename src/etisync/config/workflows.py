"""Runtime knobs shared by every reconciliation workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import optional_float

DEFAULT_LOCK_TIMEOUT_SECONDS = 30.0
DEFAULT_SETTLE_SECONDS = 0.25
DEFAULT_TRIGGER_TYPE = "MANUAL"


@dataclass(frozen=True, slots=True)
class WorkflowConfig:
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    trigger_type: str = DEFAULT_TRIGGER_TYPE


def get_workflow_config() -> WorkflowConfig:
    trigger_type = (os.getenv("ETISYNC_TRIGGER_TYPE") or DEFAULT_TRIGGER_TYPE).strip().upper()
    return WorkflowConfig(
        lock_timeout_seconds=optional_float(
            "ETISYNC_LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS
        ),
        settle_seconds=optional_float("ETISYNC_SETTLE_SECONDS", DEFAULT_SETTLE_SECONDS),
        trigger_type=trigger_type or DEFAULT_TRIGGER_TYPE,
    )
