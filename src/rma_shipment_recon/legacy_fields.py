# src/rma_shipment_recon/legacy_fields.py

"""
Legacy field normalizer.

Older RMA records keep shipment data in flat fields:

    trackingNumber / shippedThru / shippedDate                        -> outbound
    rmaReturnTrackingNumber / rmaReturnShippedThru / rmaReturnShippedDate -> return

This module maps them into PartialLeg values. It never raises: missing
fields simply come back as None, unparseable dates are recorded in
`PartialLeg.malformed_fields`.

It also holds the text/date helpers shared with the modern-schema reader:
- carrier normalization against the controlled vocabulary,
- date parsing (delegated to pandas),
- 'not available' cleanup.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as _date, datetime
from typing import Any, Mapping, Optional, Tuple

import pandas as pd

from .config import CARRIER_ALIASES
from .models import PartialLeg, SourceFieldSet

# Raw legacy field names per direction: (tracking number, carrier, shipped date)
LEGACY_OUTBOUND_FIELDS = ("trackingNumber", "shippedThru", "shippedDate")
LEGACY_RETURN_FIELDS = (
    "rmaReturnTrackingNumber",
    "rmaReturnShippedThru",
    "rmaReturnShippedDate",
)

_EMPTY_MARKERS = {"nan", "none", "null", "n/a", "nat"}


# ---------------------------------------------------------------------------
# Basic normalization helpers
# ---------------------------------------------------------------------------


def clean_text(value: Any) -> Optional[str]:
    """
    Strip a raw value; map empty / 'nan' / 'none' / 'n/a' to None.
    """
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    text = str(value).strip()
    if not text or text.lower() in _EMPTY_MARKERS:
        return None
    return text


def normalize_carrier(value: Any) -> Optional[str]:
    """
    Map free-text carrier names to a canonical label.

    Matching is a case-insensitive substring test ('by hand', 'Hand delivery'
    -> 'By Hand'; 'dtdc courier' -> 'DTDC'). Unmatched text is returned as-is
    (stripped): unknown carriers are never discarded.
    """
    text = clean_text(value)
    if text is None:
        return None
    lower = text.lower()
    for fragment, label in CARRIER_ALIASES:
        if fragment in lower:
            return label
    return text


def parse_date_checked(value: Any) -> Tuple[Optional[_date], bool]:
    """
    Parse a raw date value.

    Returns
    -------
    (date | None, malformed)
        `malformed` is True when a non-empty value was present but could
        not be interpreted as a date.

    Accepted inputs: date/datetime/pandas Timestamp, ISO or 'MM/DD/YYYY'
    strings, epoch milliseconds, and extended-JSON {'$date': ...} wrappers.
    """
    if isinstance(value, Mapping):
        value = value.get("$date")

    if value is None:
        return None, False
    if isinstance(value, datetime):
        if pd.isna(value):  # NaT is a datetime subclass
            return None, False
        return value.date(), False
    if isinstance(value, _date):
        return value, False
    if isinstance(value, bool):
        return None, True

    if isinstance(value, (int, float)):
        if pd.isna(value):
            return None, False
        try:
            ts = pd.to_datetime(value, unit="ms", errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None, True
    else:
        text = clean_text(value)
        if text is None:
            return None, False
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None, True

    if pd.isna(ts):
        return None, True
    return ts.date(), False


def parse_date(value: Any) -> Optional[_date]:
    """
    Lenient date parser: anything unparseable becomes None.
    """
    parsed, _ = parse_date_checked(value)
    return parsed


# ---------------------------------------------------------------------------
# Legacy -> PartialLeg
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LegacyLegs:
    outbound_legacy: PartialLeg
    return_legacy: PartialLeg


def _legacy_leg(record: Mapping[str, Any], fields: Tuple[str, str, str]) -> PartialLeg:
    tn_field, carrier_field, date_field = fields

    tracking_number = clean_text(record.get(tn_field))
    carrier_raw = clean_text(record.get(carrier_field))

    shipped, malformed = parse_date_checked(record.get(date_field))

    return PartialLeg(
        source_field_set=SourceFieldSet.LEGACY,
        tracking_number=tracking_number,
        carrier=normalize_carrier(carrier_raw),
        shipped_date=shipped,
        malformed_fields=(date_field,) if malformed else (),
    )


def normalize_legacy_fields(record: Mapping[str, Any]) -> LegacyLegs:
    """
    Map the flat legacy fields of one RMA record into two partial legs.

    Pure function; a record without any legacy field yields two empty legs.
    """
    return LegacyLegs(
        outbound_legacy=_legacy_leg(record, LEGACY_OUTBOUND_FIELDS),
        return_legacy=_legacy_leg(record, LEGACY_RETURN_FIELDS),
    )
