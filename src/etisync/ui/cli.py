from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from etisync import __version__
from etisync.app import (
    backfill_human_ids,
    backfill_machine_ids,
    backfill_transaction_ids,
    build_context,
    cleanup_invalid_mappings,
    cleanup_invalid_transactions,
    clear_orphan_ids,
    discover_mappings,
    export_schema_snapshot,
    init_database,
    populate_staging,
    promote_approved,
    reconcile_entity,
    update_evaluation_log,
)
from etisync.config import ConfigurationError, configure_logging
from etisync.config.storage import BACKENDS
from etisync.domain.model import ENTITIES, MAPPINGS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from etisync.app import WorkflowContext

log = logging.getLogger(__name__)

ENTITY_COMMANDS = {
    "populate-staging": ("Stage unresolved canonical names", populate_staging),
    "promote": ("Promote approved staging rows into the master table", promote_approved),
    "clear-orphans": ("Clear master ids whose name was removed", clear_orphan_ids),
    "backfill-machine-ids": ("Assign missing master machine ids", backfill_machine_ids),
    "backfill-human-ids": ("Assign missing human-readable ids", backfill_human_ids),
    "reconcile": ("Run the full chain for one entity", reconcile_entity),
}

MAPPING_COMMANDS = {
    "discover-mappings": ("Append newly seen id combinations", discover_mappings),
    "cleanup-mappings": ("Delete mapping rows with missing ids", cleanup_invalid_mappings),
}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile the expense tracking workbook")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Storage backend (defaults to ETISYNC_BACKEND or sqlalchemy)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create or upgrade the database schema")
    subparsers.add_parser(
        "cleanup-transactions", help="Clear partially filled raw transactions"
    )
    subparsers.add_parser("backfill-txn-ids", help="Assign missing transaction ids")

    for command, (help_text, _) in ENTITY_COMMANDS.items():
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--entity", choices=sorted(ENTITIES), required=True)

    for command, (help_text, _) in MAPPING_COMMANDS.items():
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--mapping", choices=sorted(MAPPINGS), required=True)

    evaluation = subparsers.add_parser(
        "update-evaluation-log", help="Record the evaluator row into the evaluation log"
    )
    evaluation.add_argument(
        "--keep-evaluator-row",
        action="store_true",
        help="Do not clear the evaluator inputs after logging",
    )

    subparsers.add_parser("schema-snapshot", help="Rebuild the Schema_Snapshot table")

    return parser.parse_args(list(argv))


def _dispatch(args: argparse.Namespace, context: WorkflowContext) -> object:
    command = args.command
    if command in ENTITY_COMMANDS:
        _, handler = ENTITY_COMMANDS[command]
        return handler(context, ENTITIES[args.entity])
    if command in MAPPING_COMMANDS:
        _, mapping_handler = MAPPING_COMMANDS[command]
        return mapping_handler(context, MAPPINGS[args.mapping])
    if command == "cleanup-transactions":
        return cleanup_invalid_transactions(context)
    if command == "backfill-txn-ids":
        return backfill_transaction_ids(context)
    if command == "update-evaluation-log":
        return update_evaluation_log(context, keep_evaluator_row=args.keep_evaluator_row)
    if command == "schema-snapshot":
        return export_schema_snapshot(context)
    raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "init-db":
            init_database()
            return
        result = _dispatch(parsed_args, build_context(backend=parsed_args.backend))
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)
    log.info("%s finished: %s", parsed_args.command, result)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
