# src/rma_shipment_recon/models.py

"""
Value objects produced by the tracking engine.

Everything here is derived from an RMA record snapshot and immutable:
- PartialLeg: raw-ish leg data where every field is optional,
- ShipmentLeg: a present leg (non-blank tracking number) with a status,
- ActiveShipmentEntry / TrackingDetail: the bulk and drill-down read-models,
- SlaResult: outcome of an SLA evaluation.

`to_dict()` methods produce the camelCase, JSON-ready shape consumed by the
presentation layer (dates as ISO 'YYYY-MM-DD', enums as their values).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as _date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import PartialDataWarning


class Direction(str, Enum):
    OUTBOUND = "outbound"
    RETURN = "return"


class TrackingStatus(str, Enum):
    """
    Lifecycle of a leg: not_shipped -> in_transit -> delivered.

    `unknown` is the side-state for malformed or contradictory data.
    """

    NOT_SHIPPED = "not_shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    UNKNOWN = "unknown"


class SourceFieldSet(str, Enum):
    LEGACY = "legacy"
    MODERN = "modern"


def _iso(value: Optional[_date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class PartialLeg:
    """
    One leg as read from either schema, before the presence check.

    `malformed_fields` lists raw date fields that held a value which could
    not be parsed; the classifier uses it to downgrade to `unknown`.
    """

    source_field_set: SourceFieldSet
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    carrier_service: Optional[str] = None
    shipped_date: Optional[_date] = None
    estimated_delivery: Optional[_date] = None
    actual_delivery: Optional[_date] = None
    status_text: Optional[str] = None
    tracking_url: Optional[str] = None
    last_updated: Optional[_date] = None
    malformed_fields: Tuple[str, ...] = ()

    @property
    def is_present(self) -> bool:
        return bool(self.tracking_number and self.tracking_number.strip())


@dataclass(frozen=True)
class ShipmentLeg:
    direction: Direction
    tracking_number: str
    status: TrackingStatus
    source_field_set: SourceFieldSet
    carrier: Optional[str] = None
    carrier_service: Optional[str] = None
    shipped_date: Optional[_date] = None
    estimated_delivery: Optional[_date] = None
    actual_delivery: Optional[_date] = None
    tracking_url: Optional[str] = None
    carrier_status: Optional[str] = None
    last_updated: Optional[_date] = None
    warnings: Tuple[PartialDataWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "trackingNumber": self.tracking_number,
            "carrier": self.carrier,
            "carrierService": self.carrier_service,
            "shippedDate": _iso(self.shipped_date),
            "estimatedDelivery": _iso(self.estimated_delivery),
            "actualDelivery": _iso(self.actual_delivery),
            "status": self.status.value,
            "carrierStatus": self.carrier_status,
            "trackingUrl": self.tracking_url,
            "lastUpdated": _iso(self.last_updated),
            "sourceFieldSet": self.source_field_set.value,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class LegPair:
    outbound: Optional[ShipmentLeg] = None
    return_leg: Optional[ShipmentLeg] = None

    @property
    def has_any(self) -> bool:
        return self.outbound is not None or self.return_leg is not None

    def legs(self) -> List[ShipmentLeg]:
        return [leg for leg in (self.outbound, self.return_leg) if leg is not None]


def _leg_dict(leg: Optional[ShipmentLeg]) -> Optional[Dict[str, Any]]:
    return leg.to_dict() if leg is not None else None


@dataclass(frozen=True)
class ActiveShipmentEntry:
    rma_id: Optional[str]
    rma_number: Optional[str]
    site_name: Optional[str]
    product_name: Optional[str]
    outbound: Optional[ShipmentLeg] = None
    return_leg: Optional[ShipmentLeg] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rmaId": self.rma_id,
            "rmaNumber": self.rma_number,
            "siteName": self.site_name,
            "productName": self.product_name,
            "outbound": _leg_dict(self.outbound),
            "return": _leg_dict(self.return_leg),
        }


@dataclass(frozen=True)
class TrackingDetail:
    rma_id: str
    rma_number: Optional[str]
    outbound: Optional[ShipmentLeg]
    return_leg: Optional[ShipmentLeg]
    last_updated: datetime
    tracking_history: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rmaId": self.rma_id,
            "rmaNumber": self.rma_number,
            "outbound": _leg_dict(self.outbound),
            "return": _leg_dict(self.return_leg),
            "trackingHistory": list(self.tracking_history),
            "lastUpdated": self.last_updated.isoformat(timespec="seconds"),
        }


@dataclass(frozen=True)
class SlaResult:
    breached: bool
    days_elapsed: Optional[int]
    target_days: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breached": self.breached,
            "daysElapsed": self.days_elapsed,
            "targetDays": self.target_days,
            "reason": self.reason,
        }
