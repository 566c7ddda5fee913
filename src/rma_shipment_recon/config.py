# src/rma_shipment_recon/config.py

"""
Global configuration and business constants for the RMA shipment tracking engine.

This module holds:
- the carrier vocabulary (free-text fragments -> canonical carrier labels),
- the read-only "delivery providers" list,
- carrier status vocabularies,
- SLA thresholds,
- report sheet names and columns,
- settings for the remote RMA record source.

Having these in a dedicated module:
- avoids hardcoding values across the codebase,
- makes business rules explicit,
- simplifies adding new carriers without touching the reconciliation code.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

# Carrier normalization: (lower-case fragment, canonical label).
# Order matters: the first fragment found in the text wins.
CARRIER_ALIASES = [
    ("hand", "By Hand"),
    ("dtdc", "DTDC"),
    ("movin", "Movin"),
    ("fedex", "FedEx"),
    ("dhl", "DHL"),
    ("blue dart", "Blue Dart"),
    ("bluedart", "Blue Dart"),
    ("india post", "India Post"),
    ("delhivery", "Delhivery"),
]

# Public tracking pages per canonical carrier ({tn} is the tracking number)
TRACKING_URL_TEMPLATES = {
    "DTDC": "https://www.dtdc.com/tracking/tracking-results.asp?strCnno={tn}",
    "Blue Dart": "https://www.bluedart.com/tracking?trackFor=0&trackNo={tn}",
    "FedEx": "https://www.fedex.com/fedextrack/?trknbr={tn}",
    "DHL": "https://www.dhl.com/in-en/home/tracking.html?tracking-id={tn}",
    "India Post": "https://www.indiapost.gov.in/_layouts/15/dop.portal.tracking/trackconsignment.aspx?tn={tn}",
    "Delhivery": "https://www.delhivery.com/track/package/{tn}",
}

# Read-only provider list exposed for display / filtering
DELIVERY_PROVIDERS = [
    {
        "id": "blue-dart",
        "name": "Blue Dart",
        "code": "BLUE_DART",
        "displayName": "Blue Dart Express",
        "isActive": True,
        "supportedServices": ["EXPRESS", "STANDARD"],
        "trackingFormat": {"pattern": r"^[A-Z]{2}[0-9]{9}IN$"},
    },
    {
        "id": "dtdc",
        "name": "DTDC",
        "code": "DTDC",
        "displayName": "DTDC Express",
        "isActive": True,
        "supportedServices": ["EXPRESS", "STANDARD"],
        "trackingFormat": {"pattern": r"^[0-9]{10,12}$"},
    },
    {
        "id": "fedex",
        "name": "FedEx",
        "code": "FEDEX",
        "displayName": "FedEx Express",
        "isActive": True,
        "supportedServices": ["EXPRESS", "STANDARD"],
        "trackingFormat": {"pattern": r"^[0-9]{12}$"},
    },
    {
        "id": "dhl",
        "name": "DHL",
        "code": "DHL",
        "displayName": "DHL Express",
        "isActive": True,
        "supportedServices": ["EXPRESS", "STANDARD"],
        "trackingFormat": {"pattern": r"^[0-9]{10}$"},
    },
    {
        "id": "india-post",
        "name": "India Post",
        "code": "INDIA_POST",
        "displayName": "India Post",
        "isActive": True,
        "supportedServices": ["STANDARD"],
        "trackingFormat": {"pattern": r"^[A-Z]{2}[0-9]{9}IN$"},
    },
    {
        "id": "delhivery",
        "name": "Delhivery",
        "code": "DELHIVERY",
        "displayName": "Delhivery",
        "isActive": True,
        "supportedServices": ["EXPRESS", "STANDARD"],
        "trackingFormat": {"pattern": r"^[0-9]{10,12}$"},
    },
]

# Carrier status text (modern `shipping.<dir>.status`) grouped by meaning
DELIVERED_STATUS_TEXTS = {"delivered"}
MOVING_STATUS_TEXTS = {"picked_up", "in_transit", "out_for_delivery"}


@dataclass
class SlaThresholds:
    """
    SLA configuration (in days).
    """

    target_delivery_days: int = 3


SLA_THRESHOLDS = SlaThresholds()

# Excel report
SHEET_ACTIVE_SHIPMENTS = "Active Shipments"
SHEET_SLA_BREACHES = "SLA Breaches"

REPORT_COLS = [
    "RMA Number",
    "Site Name",
    "Product Name",
    "Direction",
    "Tracking Number",
    "Carrier",
    "Shipped Date",
    "Estimated Delivery",
    "Actual Delivery",
    "Status",
    "Source",
    "Days Elapsed",
    "SLA Breached",
]

BREACH_COLS = [
    "RMA Number",
    "Site Name",
    "Direction",
    "Tracking Number",
    "Carrier",
    "Days Elapsed",
    "Target Days",
    "Reason",
]


@dataclass
class SourceConfig:
    """
    Settings for the remote RMA record source.

    Attributes
    ----------
    base_url:
        Root of the RMA REST API, e.g. 'https://service.example.com/api'.
    token:
        Optional bearer token sent with every request.
    timeout_s:
        Per-request timeout. Failures are reported, never retried.
    """

    base_url: str
    token: str = ""
    timeout_s: float = 15.0

    @classmethod
    def from_env(cls) -> "SourceConfig":
        """
        Build SourceConfig from environment variables:

        - RMA_API_BASE_URL
        - RMA_API_TOKEN
        - RMA_API_TIMEOUT_S
        """
        return cls(
            base_url=os.environ.get("RMA_API_BASE_URL", ""),
            token=os.environ.get("RMA_API_TOKEN", ""),
            timeout_s=float(os.environ.get("RMA_API_TIMEOUT_S", "15")),
        )
