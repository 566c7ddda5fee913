# src/rma_shipment_recon/sla_evaluator.py

"""
SLA breach evaluation for shipment legs.

Elapsed time is measured in whole days from the shipped date:
- to the actual delivery date when the leg is delivered (fixed forever),
- to "now" while the leg is still moving.

A leg that never shipped cannot breach.
"""

from __future__ import annotations

import logging
from datetime import date as _date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import SLA_THRESHOLDS
from .core_reconciliation import extract_legs, record_id
from .legacy_fields import clean_text
from .models import Direction, ShipmentLeg, SlaResult

logger = logging.getLogger(__name__)


def _as_date(value) -> _date:
    if isinstance(value, datetime):
        return value.date()
    return value


def evaluate_breach(
    leg: ShipmentLeg,
    target_days: int,
    now: Optional[_date] = None,
) -> SlaResult:
    """
    Compare the elapsed days of a leg against `target_days`.

    Parameters
    ----------
    leg:
        Leg to evaluate.
    target_days:
        Allowed transit days; breached iff elapsed days strictly exceed it.
    now:
        Reference date for legs still in transit (default: today).
        Ignored once `actual_delivery` is set.
    """
    if target_days < 0:
        raise ValueError(f"target_days must be >= 0, got {target_days}")

    if leg.shipped_date is None:
        return SlaResult(breached=False, days_elapsed=None, target_days=target_days)

    if leg.actual_delivery is not None:
        end = leg.actual_delivery
        verb = "took"
    else:
        end = _as_date(now) if now is not None else _date.today()
        verb = "has been in transit for"

    days_elapsed = (end - leg.shipped_date).days
    breached = days_elapsed > target_days

    reason = ""
    if breached:
        label = "Outbound delivery" if leg.direction is Direction.OUTBOUND else "Return delivery"
        reason = f"{label} {verb} {days_elapsed} days, exceeding target of {target_days} days"

    return SlaResult(
        breached=breached,
        days_elapsed=days_elapsed,
        target_days=target_days,
        reason=reason,
    )


def target_days_for(record: Mapping[str, Any], default: Optional[int] = None) -> int:
    """
    Per-record SLA target (`sla.targetDeliveryDays`), else `default`,
    else the configured threshold.
    """
    fallback = default if default is not None else SLA_THRESHOLDS.target_delivery_days

    sla = record.get("sla")
    if not isinstance(sla, Mapping):
        return fallback
    raw = sla.get("targetDeliveryDays")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return fallback
    return value if value >= 0 else fallback


def find_sla_breaches(
    records: Iterable[Mapping[str, Any]],
    target_days: Optional[int] = None,
    now: Optional[_date] = None,
) -> List[Dict[str, Any]]:
    """
    Evaluate every present leg of every record; return one entry per breached leg.

    When `target_days` is None, each record's own `sla.targetDeliveryDays`
    (or the configured default) is used.
    """
    breaches: List[Dict[str, Any]] = []

    for record in records:
        if not isinstance(record, Mapping):
            continue
        target = target_days if target_days is not None else target_days_for(record)
        for leg in extract_legs(record).legs():
            result = evaluate_breach(leg, target, now=now)
            if not result.breached:
                continue
            breaches.append(
                {
                    "rmaId": record_id(record),
                    "rmaNumber": clean_text(record.get("rmaNumber")),
                    "siteName": clean_text(record.get("siteName")),
                    "direction": leg.direction.value,
                    "leg": leg.to_dict(),
                    "sla": result.to_dict(),
                }
            )

    logger.info("SLA evaluation: %d breached legs", len(breaches))
    return breaches
