# src/rma_shipment_recon/api.py

"""
Response envelopes at the engine boundary.

Canonical shapes (pinned here, validated by validate_shipments_response):

    active shipments: {"success": true, "count": n, "shipments": [...]}
    tracking detail:  {"success": true, "tracking": {"outbound": ..., "return": ...}}
    SLA breaches:     {"success": true, "count": n, "breaches": [...]}
    providers:        {"success": true, "providers": [...]}
    errors:           {"success": false, "error": "...", "status": 400|404|502}

`shipments` is a direct field of the envelope; it is never nested under
an extra `data` wrapper.

Structural errors (InvalidArgument, NotFound, UpstreamFetchFailure) are
raised by these functions; a host framework maps them with error_response().
"""

from __future__ import annotations

import copy
from datetime import date as _date
from typing import Any, Dict, Optional

from .config import DELIVERY_PROVIDERS
from .core_reconciliation import aggregate_active, record_id
from .detail_resolver import resolve_by_tracking_number, resolve_detail
from .errors import TrackingEngineError
from .legacy_fields import clean_text
from .record_source import RmaRecordSource
from .sla_evaluator import find_sla_breaches


def get_active_shipments(source: RmaRecordSource) -> Dict[str, Any]:
    entries = aggregate_active(source.all())
    shipments = [entry.to_dict() for entry in entries]
    return {"success": True, "count": len(shipments), "shipments": shipments}


def get_rma_tracking(source: RmaRecordSource, rma_id: Optional[str]) -> Dict[str, Any]:
    detail = resolve_detail(source, rma_id)
    return {"success": True, "tracking": detail.to_dict()}


def get_sla_breaches(
    source: RmaRecordSource,
    target_days: Optional[int] = None,
    now: Optional[_date] = None,
) -> Dict[str, Any]:
    breaches = find_sla_breaches(source.all(), target_days=target_days, now=now)
    return {"success": True, "count": len(breaches), "breaches": breaches}


def find_rma_by_tracking_number(
    source: RmaRecordSource, tracking_number: Optional[str]
) -> Dict[str, Any]:
    record, leg = resolve_by_tracking_number(source, tracking_number)
    return {
        "success": True,
        "rma": {
            "id": record_id(record),
            "rmaNumber": clean_text(record.get("rmaNumber")),
            "siteName": clean_text(record.get("siteName")),
            "productName": clean_text(record.get("productName")),
            "caseStatus": clean_text(record.get("caseStatus")),
            "direction": leg.direction.value,
            "leg": leg.to_dict(),
        },
    }


def get_delivery_providers() -> Dict[str, Any]:
    return {"success": True, "providers": copy.deepcopy(DELIVERY_PROVIDERS)}


def error_response(exc: TrackingEngineError) -> Dict[str, Any]:
    return {"success": False, "error": str(exc), "status": exc.status_code}


def validate_shipments_response(payload: Any) -> Dict[str, Any]:
    """
    Check that a bulk response has the canonical shape.

    Raises ValueError when:
    - the payload is not an object or `success` is not True,
    - `shipments` is missing (including the `data.shipments` nesting),
    - `shipments` is not a list, or `count` disagrees with its length.
    """
    if not isinstance(payload, dict):
        raise ValueError("Active shipments response must be an object")
    if payload.get("success") is not True:
        raise ValueError("Active shipments response is not a success envelope")
    if "shipments" not in payload:
        if isinstance(payload.get("data"), dict) and "shipments" in payload["data"]:
            raise ValueError("'shipments' must be a direct field, not nested under 'data'")
        raise ValueError("Active shipments response has no 'shipments' field")

    shipments = payload["shipments"]
    if not isinstance(shipments, list):
        raise ValueError("'shipments' must be a list")
    if payload.get("count") != len(shipments):
        raise ValueError(
            f"'count' ({payload.get('count')}) does not match {len(shipments)} shipments"
        )
    return payload
