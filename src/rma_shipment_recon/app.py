# src/rma_shipment_recon/app.py

"""
Command-line entry point for the RMA shipment tracking engine.

This module wires together:
- a record source (JSON snapshot or the RMA REST API),
- the reconciliation engine and its response envelopes,
- Excel reporting,
- audit & session logging.

Usage:
    rma-recon --records rmas.json active
    rma-recon --records rmas.json detail 65a1f0c2e4b0a1b2c3d4e5f6
    rma-recon --api-url https://service.example.com/api breaches --target-days 5
    rma-recon --records rmas.json find D30048484
    rma-recon providers
    rma-recon --records rmas.json report out/tracking.xlsx
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date as _date
from pathlib import Path
from typing import Any, Dict, List, Optional

from .api import (
    error_response,
    find_rma_by_tracking_number,
    get_active_shipments,
    get_delivery_providers,
    get_rma_tracking,
    get_sla_breaches,
)
from .caching import CachedRecordSource
from .config import SLA_THRESHOLDS, SourceConfig
from .core_reconciliation import aggregate_active
from .errors import TrackingEngineError
from .excel_reporting import breaches_to_frame, save_tracking_report, shipments_to_frame
from .logging_audit import SessionLogger, setup_audit_logger
from .record_source import HttpRecordSource, InMemoryRecordSource, RmaRecordSource
from .sla_evaluator import find_sla_breaches

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rma-recon",
        description="Reconcile RMA shipment tracking across legacy and nested schemas.",
    )
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--records", type=Path, help="JSON export of RMA records")
    src.add_argument("--api-url", help="RMA REST API base URL (default: $RMA_API_BASE_URL)")
    ap.add_argument("--timeout", type=float, default=None, help="API request timeout in seconds")
    ap.add_argument(
        "--cache-ttl", type=float, default=None, help="Serve API reads from a cache for this many seconds"
    )
    ap.add_argument("--log-dir", type=Path, default=None, help="Write audit + session logs here")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("active", help="List RMAs with at least one tracked leg")

    p_detail = sub.add_parser("detail", help="Tracking detail for one RMA")
    p_detail.add_argument("rma_id")

    p_find = sub.add_parser("find", help="Find the RMA owning a tracking number")
    p_find.add_argument("tracking_number")

    p_breaches = sub.add_parser("breaches", help="List legs breaching the SLA")
    p_breaches.add_argument("--target-days", type=int, default=None)
    p_breaches.add_argument("--as-of", type=_date.fromisoformat, default=None, help="YYYY-MM-DD")

    sub.add_parser("providers", help="List recognized delivery providers")

    p_report = sub.add_parser("report", help="Write an Excel tracking report")
    p_report.add_argument("output", type=Path)
    p_report.add_argument(
        "--target-days", type=int, default=SLA_THRESHOLDS.target_delivery_days
    )
    p_report.add_argument("--as-of", type=_date.fromisoformat, default=None, help="YYYY-MM-DD")

    return ap


def build_source(args: argparse.Namespace) -> RmaRecordSource:
    if args.records is not None:
        return InMemoryRecordSource.from_json_file(args.records)

    config = SourceConfig.from_env()
    if args.api_url:
        config.base_url = args.api_url
    if args.timeout is not None:
        config.timeout_s = args.timeout
    source = HttpRecordSource(config)
    if args.cache_ttl:
        return CachedRecordSource(source, ttl_s=args.cache_ttl)
    return source


def write_report(source: RmaRecordSource, output: Path, target_days: int, as_of: Optional[_date]) -> Dict[str, Any]:
    records: List[Dict[str, Any]] = source.all()
    shipments_df = shipments_to_frame(aggregate_active(records), target_days=target_days, now=as_of)
    breaches_df = breaches_to_frame(find_sla_breaches(records, target_days=target_days, now=as_of))
    save_tracking_report(shipments_df, breaches_df, output)
    return {
        "success": True,
        "file": str(output),
        "legs": len(shipments_df),
        "breaches": len(breaches_df),
    }


def run_command(args: argparse.Namespace) -> Dict[str, Any]:
    if args.command == "providers":
        return get_delivery_providers()

    source = build_source(args)
    if args.command == "active":
        return get_active_shipments(source)
    if args.command == "detail":
        return get_rma_tracking(source, args.rma_id)
    if args.command == "find":
        return find_rma_by_tracking_number(source, args.tracking_number)
    if args.command == "breaches":
        return get_sla_breaches(source, target_days=args.target_days, now=args.as_of)
    if args.command == "report":
        return write_report(source, args.output, args.target_days, args.as_of)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_audit_logger(
        log_dir=args.log_dir,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    session = SessionLogger.create(base_dir=args.log_dir) if args.log_dir else None

    try:
        payload = run_command(args)
        exit_code = 0
        if session:
            session.log(
                "INFO",
                f"{args.command} completed",
                {"count": payload.get("count"), "command": args.command},
            )
    except TrackingEngineError as exc:
        logger.error("%s failed: %s", args.command, exc)
        if session:
            session.log("ERROR", f"{args.command} failed", {"error": str(exc)})
        payload = error_response(exc)
        exit_code = 1 if exc.status_code < 500 else 2
    finally:
        if session:
            session.close()

    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
