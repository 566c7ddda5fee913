# src/rma_shipment_recon/core_reconciliation.py

"""
Core reconciliation engine for RMA shipment tracking data.

Key principles:
- Two schema generations coexist: legacy flat fields and the nested
  `shipping.outbound` / `shipping.return` structure. Both may be present.
- Modern fields win when they carry a tracking number; legacy fields are
  never dropped when they are the only source.
- A leg exists only if its tracking number is non-blank.
- Per-record data problems degrade the status to 'unknown'; they never
  abort processing of the rest of the corpus.

This module contains:
- the leg extractor (precedence modern -> legacy, per direction),
- the tracking state classifier,
- the active shipment aggregator,
- lookup of an RMA by tracking number across both schemas.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .config import DELIVERED_STATUS_TEXTS, MOVING_STATUS_TEXTS, TRACKING_URL_TEMPLATES
from .errors import PartialDataWarning
from .legacy_fields import clean_text, normalize_carrier, normalize_legacy_fields, parse_date_checked
from .models import (
    ActiveShipmentEntry,
    Direction,
    LegPair,
    PartialLeg,
    ShipmentLeg,
    SourceFieldSet,
    TrackingStatus,
)

logger = logging.getLogger(__name__)

MODERN_DATE_FIELDS = ("shippedDate", "estimatedDelivery", "actualDelivery")


# ---------------------------------------------------------------------------
# Record accessors
# ---------------------------------------------------------------------------


def record_id(record: Mapping[str, Any]) -> Optional[str]:
    """
    Identifier of a record: Mongo-style '_id' (plain or {'$oid': ...}) or 'id'.
    """
    raw = record.get("_id", record.get("id"))
    if isinstance(raw, Mapping):
        raw = raw.get("$oid")
    return clean_text(raw)


def _modern_section(record: Mapping[str, Any], direction: Direction) -> Mapping[str, Any]:
    shipping = record.get("shipping")
    if not isinstance(shipping, Mapping):
        return {}
    section = shipping.get(direction.value)
    return section if isinstance(section, Mapping) else {}


def read_modern_leg(record: Mapping[str, Any], direction: Direction) -> PartialLeg:
    """
    Read `shipping.<direction>` into a PartialLeg (all fields optional).
    """
    section = _modern_section(record, direction)

    dates = {}
    malformed: List[str] = []
    for name in MODERN_DATE_FIELDS + ("lastUpdated",):
        parsed, bad = parse_date_checked(section.get(name))
        dates[name] = parsed
        if bad and name in MODERN_DATE_FIELDS:
            malformed.append(f"shipping.{direction.value}.{name}")

    return PartialLeg(
        source_field_set=SourceFieldSet.MODERN,
        tracking_number=clean_text(section.get("trackingNumber")),
        carrier=normalize_carrier(section.get("carrier")),
        carrier_service=clean_text(section.get("carrierService")),
        shipped_date=dates["shippedDate"],
        estimated_delivery=dates["estimatedDelivery"],
        actual_delivery=dates["actualDelivery"],
        status_text=clean_text(section.get("status")),
        tracking_url=clean_text(section.get("trackingUrl")),
        last_updated=dates["lastUpdated"],
        malformed_fields=tuple(malformed),
    )


# ---------------------------------------------------------------------------
# Tracking state classifier
# ---------------------------------------------------------------------------


def classify(leg: PartialLeg) -> TrackingStatus:
    """
    Derive the lifecycle status of a leg from its dates and status text.

    Rules, first match wins:
    - delivery date before ship date        -> UNKNOWN (contradictory),
    - delivery date present                 -> DELIVERED,
    - ship date present                     -> IN_TRANSIT,
    - carrier status text 'delivered'       -> DELIVERED,
    - picked_up / in_transit / out_for_delivery -> IN_TRANSIT,
    - a date field was present but garbled  -> UNKNOWN,
    - nothing usable                        -> NOT_SHIPPED.
    """
    if leg.actual_delivery and leg.shipped_date and leg.actual_delivery < leg.shipped_date:
        return TrackingStatus.UNKNOWN
    if leg.actual_delivery:
        return TrackingStatus.DELIVERED
    if leg.shipped_date:
        return TrackingStatus.IN_TRANSIT

    status_text = (leg.status_text or "").strip().lower().replace(" ", "_")
    if status_text in DELIVERED_STATUS_TEXTS:
        return TrackingStatus.DELIVERED
    if status_text in MOVING_STATUS_TEXTS:
        return TrackingStatus.IN_TRANSIT

    if leg.malformed_fields:
        return TrackingStatus.UNKNOWN
    return TrackingStatus.NOT_SHIPPED


# ---------------------------------------------------------------------------
# Shipment leg extractor
# ---------------------------------------------------------------------------


def build_tracking_url(carrier: Optional[str], tracking_number: str) -> Optional[str]:
    template = TRACKING_URL_TEMPLATES.get(carrier or "")
    if template is None:
        return None
    return template.format(tn=tracking_number)


def _to_shipment_leg(
    partial: PartialLeg,
    direction: Direction,
    extra_warnings: Tuple[PartialDataWarning, ...] = (),
) -> ShipmentLeg:
    tracking_number = (partial.tracking_number or "").strip()
    status = classify(partial)

    warnings = tuple(
        PartialDataWarning(
            code="unparseable_date",
            field=name,
            message=f"{name} could not be parsed as a date",
        )
        for name in partial.malformed_fields
    ) + extra_warnings

    return ShipmentLeg(
        direction=direction,
        tracking_number=tracking_number,
        status=status,
        source_field_set=partial.source_field_set,
        carrier=partial.carrier,
        carrier_service=partial.carrier_service,
        shipped_date=partial.shipped_date,
        estimated_delivery=partial.estimated_delivery,
        actual_delivery=partial.actual_delivery,
        tracking_url=partial.tracking_url or build_tracking_url(partial.carrier, tracking_number),
        carrier_status=partial.status_text,
        last_updated=partial.last_updated,
        warnings=warnings,
    )


def _resolve_leg(
    modern: PartialLeg, legacy: PartialLeg, direction: Direction
) -> Optional[ShipmentLeg]:
    """
    Single precedence point between the two schemas for one direction.

    1) modern tracking number non-blank -> modern leg only,
    2) else legacy tracking number non-blank -> legacy leg,
    3) else no leg.
    """
    if modern.is_present:
        conflict: Tuple[PartialDataWarning, ...] = ()
        if legacy.is_present and legacy.tracking_number.strip() != modern.tracking_number.strip():
            logger.debug(
                "Legacy %s tracking number %r ignored in favour of %r",
                direction.value,
                legacy.tracking_number,
                modern.tracking_number,
            )
            conflict = (
                PartialDataWarning(
                    code="legacy_conflict",
                    field=direction.value,
                    message=(
                        f"legacy tracking number {legacy.tracking_number.strip()} "
                        f"differs from {modern.tracking_number.strip()}"
                    ),
                ),
            )
        return _to_shipment_leg(modern, direction, conflict)

    if legacy.is_present:
        return _to_shipment_leg(legacy, direction)

    return None


def extract_legs(record: Mapping[str, Any]) -> LegPair:
    """
    Produce the outbound and return legs of one RMA record (each may be None).

    Works for legacy-only, modern-only and mixed records.
    """
    legacy = normalize_legacy_fields(record)
    outbound = _resolve_leg(
        read_modern_leg(record, Direction.OUTBOUND), legacy.outbound_legacy, Direction.OUTBOUND
    )
    return_leg = _resolve_leg(
        read_modern_leg(record, Direction.RETURN), legacy.return_legacy, Direction.RETURN
    )
    return LegPair(outbound=outbound, return_leg=return_leg)


# ---------------------------------------------------------------------------
# Active shipment aggregator
# ---------------------------------------------------------------------------


def build_entry(record: Mapping[str, Any], legs: LegPair) -> ActiveShipmentEntry:
    return ActiveShipmentEntry(
        rma_id=record_id(record),
        rma_number=clean_text(record.get("rmaNumber")),
        site_name=clean_text(record.get("siteName")),
        product_name=clean_text(record.get("productName")),
        outbound=legs.outbound,
        return_leg=legs.return_leg,
    )


def aggregate_active(records: Iterable[Mapping[str, Any]]) -> List[ActiveShipmentEntry]:
    """
    Build the "active shipments" list.

    Behaviour:
    - one linear scan, output in input order (no sorting),
    - an RMA is included iff at least one leg is present,
    - records that are not mappings are skipped and logged,
    - degraded legs (warnings) stay in the output with their status.
    """
    entries: List[ActiveShipmentEntry] = []
    scanned = 0
    degraded = 0

    for record in records:
        scanned += 1
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-mapping RMA record at position %d", scanned - 1)
            continue

        legs = extract_legs(record)
        if not legs.has_any:
            continue

        if any(leg.warnings for leg in legs.legs()):
            degraded += 1
        entries.append(build_entry(record, legs))

    if degraded:
        logger.warning(
            "Active shipment aggregation: %d of %d entries carry partial-data warnings",
            degraded,
            len(entries),
        )
    logger.info("Active shipment aggregation: %d records scanned, %d active", scanned, len(entries))
    return entries


def find_by_tracking_number(
    records: Iterable[Mapping[str, Any]], tracking_number: str
) -> Optional[Tuple[Mapping[str, Any], ShipmentLeg]]:
    """
    Find the first record whose outbound or return leg carries `tracking_number`.

    Both schemas are searched through `extract_legs`, so RMAs whose only
    tracking data lives in legacy fields are found too. Comparison is
    whitespace- and case-insensitive.
    """
    needle = (tracking_number or "").strip().upper()
    if not needle:
        return None

    for record in records:
        if not isinstance(record, Mapping):
            continue
        for leg in extract_legs(record).legs():
            if leg.tracking_number.upper() == needle:
                return record, leg
    return None
