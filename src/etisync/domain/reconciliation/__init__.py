"""Reconciliation workflows over a tabular store.

Each workflow is a plain function taking the unit of work's repositories and a
:class:`WorkflowRun`; locking, transactions and failure auditing belong to the
application layer.
"""

from __future__ import annotations

from .backfill import (
    BackfillResult,
    backfill_human_ids,
    backfill_machine_ids,
    backfill_transaction_ids,
)
from .evaluation import EvaluationLogResult, EvaluationOutcome, update_evaluation_log
from .intake import IntakeResult, populate_staging
from .mappings import (
    MappingCleanupResult,
    MappingDiscoveryResult,
    cleanup_invalid_mappings,
    discover_mappings,
)
from .orphans import (
    FillState,
    OrphanCleanupResult,
    cleanup_invalid_transactions,
    clear_orphan_ids,
    fill_state,
)
from .promotion import PromotionResult, promote_approved
from .run import WorkflowRun
from .schema import SchemaSnapshotResult, column_letter, export_schema_snapshot

__all__ = [
    "BackfillResult",
    "EvaluationLogResult",
    "EvaluationOutcome",
    "FillState",
    "IntakeResult",
    "MappingCleanupResult",
    "MappingDiscoveryResult",
    "OrphanCleanupResult",
    "PromotionResult",
    "SchemaSnapshotResult",
    "WorkflowRun",
    "backfill_human_ids",
    "backfill_machine_ids",
    "backfill_transaction_ids",
    "cleanup_invalid_mappings",
    "cleanup_invalid_transactions",
    "clear_orphan_ids",
    "column_letter",
    "discover_mappings",
    "export_schema_snapshot",
    "fill_state",
    "populate_staging",
    "promote_approved",
    "update_evaluation_log",
]
