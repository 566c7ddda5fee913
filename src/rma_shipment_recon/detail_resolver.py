# src/rma_shipment_recon/detail_resolver.py

"""
Per-RMA tracking detail for drill-down views.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .core_reconciliation import extract_legs, find_by_tracking_number, record_id
from .errors import InvalidArgument, NotFound
from .legacy_fields import clean_text
from .models import ShipmentLeg, TrackingDetail
from .record_source import RmaRecordSource

logger = logging.getLogger(__name__)


def _require_identifier(value: Optional[str], what: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidArgument(f"{what} is required")
    return text


def resolve_detail(
    source: RmaRecordSource,
    rma_id: Optional[str],
    now: Optional[datetime] = None,
) -> TrackingDetail:
    """
    Resolve both legs of one RMA.

    Raises
    ------
    InvalidArgument
        Empty/missing identifier; raised before any fetch.
    NotFound
        The source has no record for the identifier.
    UpstreamFetchFailure
        Propagated from the source.
    """
    rma_id = _require_identifier(rma_id, "RMA identifier")

    record = source.get(rma_id)
    if record is None:
        raise NotFound(f"RMA {rma_id} not found")

    legs = extract_legs(record)
    history = record.get("trackingHistory")

    logger.debug(
        "Resolved tracking for RMA %s: outbound=%s return=%s",
        rma_id,
        legs.outbound.status.value if legs.outbound else None,
        legs.return_leg.status.value if legs.return_leg else None,
    )

    return TrackingDetail(
        rma_id=record_id(record) or rma_id,
        rma_number=clean_text(record.get("rmaNumber")),
        outbound=legs.outbound,
        return_leg=legs.return_leg,
        last_updated=now or datetime.now(),
        tracking_history=tuple(history) if isinstance(history, list) else (),
    )


def resolve_by_tracking_number(
    source: RmaRecordSource, tracking_number: Optional[str]
) -> Tuple[Dict[str, Any], ShipmentLeg]:
    """
    Find the RMA owning a tracking number (either direction, either schema).
    """
    tracking_number = _require_identifier(tracking_number, "Tracking number")

    match = find_by_tracking_number(source.all(), tracking_number)
    if match is None:
        raise NotFound(f"No RMA found with tracking number {tracking_number}")
    record, leg = match
    return dict(record), leg
