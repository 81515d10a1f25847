#!/usr/bin/env python3
"""
Operator CLI for the reconciliation engine.

Runs one reconciliation operation against a database and prints the
result as JSON on stdout.  Structured logs go to stderr.

Usage:
    python3 scripts/reconcile.py scan --database-url sqlite:///shop.db
    python3 scripts/reconcile.py backfill
    python3 scripts/reconcile.py run
    python3 scripts/reconcile.py stats
    python3 scripts/reconcile.py webhook order_confirmed <order-id>
    python3 scripts/reconcile.py webhook credit_payment <account-id> --amount 150.00
    python3 scripts/reconcile.py serve --interval-minutes 30

The database URL comes from --database-url, else from the config file's
``database_url``.  Exit code is 0 on success, 1 on a failed job, a
rejected webhook or an error.
"""

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from recon_config import get_active_config
from recon_kernel.exceptions import ReconciliationError
from recon_kernel.logging_config import configure_logging, get_logger

from recon_engines.drift_scanner import summarize
from recon_services import WebhookEvent, WebhookEventType

from recon_batch.orchestrator import SyncOrchestrator

logger = get_logger("cli")


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_scan(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    findings = orchestrator.drift_service.detect_inconsistencies()
    summary = summarize(findings)
    _emit({
        "inconsistencies": [i.to_dict() for i in findings],
        "summary": {
            "total": summary.total,
            "critical": summary.critical,
            "by_type": summary.by_type,
            "by_severity": summary.by_severity,
        },
    })
    return 0


def cmd_backfill(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    result = orchestrator.processor.sync_historical_data()
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_run(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    result = orchestrator.scheduler.run_sync_job()
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_stats(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    _emit(orchestrator.scheduler.get_detailed_stats().to_dict())
    return 0


def cmd_webhook(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    data: dict[str, Any] = {}
    if args.amount is not None:
        data["amount"] = args.amount
    if args.payment_reference is not None:
        data["paymentReference"] = args.payment_reference
    event = WebhookEvent(type=args.event_type, entity_id=args.entity_id, data=data)
    result = orchestrator.processor.trigger_webhook(event)
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_serve(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    interval = args.interval_minutes or orchestrator.config.interval_minutes
    scheduler = orchestrator.scheduler
    scheduler.start(interval_minutes=interval)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("cli_interrupted")
    finally:
        scheduler.stop()
    _emit(scheduler.get_status().to_dict())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Financial reconciliation engine operator CLI.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy database URL (default: database_url from config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML config file (default: packaged default.yaml)",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before running",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scan", help="Detect drift and print every finding")
    subparsers.add_parser("backfill", help="Create missing ledger transactions")
    subparsers.add_parser("run", help="Run one full sync job")
    subparsers.add_parser("stats", help="Print detailed integrity statistics")

    webhook = subparsers.add_parser("webhook", help="Deliver one business event")
    webhook.add_argument(
        "event_type",
        help="One of: " + ", ".join(t.value for t in WebhookEventType),
    )
    webhook.add_argument("entity_id", help="Order id or credit account id")
    webhook.add_argument("--amount", default=None, help="Payment amount (credit_payment)")
    webhook.add_argument(
        "--payment-reference",
        default=None,
        help="Idempotency reference for credit payments",
    )

    serve = subparsers.add_parser("serve", help="Run the scheduler until interrupted")
    serve.add_argument(
        "--interval-minutes",
        type=float,
        default=None,
        help="Minutes between runs (default: interval_minutes from config)",
    )
    return parser


COMMANDS = {
    "scan": cmd_scan,
    "backfill": cmd_backfill,
    "run": cmd_run,
    "stats": cmd_stats,
    "webhook": cmd_webhook,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ReconciliationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=config.log_level, stream=sys.stderr)

    database_url = args.database_url or config.database_url
    if not database_url:
        print("ERROR: no database URL (use --database-url or config)", file=sys.stderr)
        return 1

    try:
        orchestrator = SyncOrchestrator.from_database_url(
            database_url, config=config, create_schema=args.create_schema,
        )
    except SQLAlchemyError as exc:
        logger.error("cli_database_unavailable", extra={"error": str(exc)})
        print(f"ERROR: cannot open database: {exc}", file=sys.stderr)
        return 1

    try:
        return COMMANDS[args.command](orchestrator, args)
    except ReconciliationError as exc:
        logger.error("cli_command_failed", extra={"command": args.command, "error_code": exc.code})
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        orchestrator.close()


if __name__ == "__main__":
    raise SystemExit(main())
