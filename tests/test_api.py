# tests/test_api.py

from datetime import date
from unittest import mock

import pytest

from rma_shipment_recon.api import (
    error_response,
    find_rma_by_tracking_number,
    get_active_shipments,
    get_delivery_providers,
    get_rma_tracking,
    get_sla_breaches,
    validate_shipments_response,
)
from rma_shipment_recon.errors import InvalidArgument, NotFound, UpstreamFetchFailure
from rma_shipment_recon.record_source import InMemoryRecordSource

RECORDS = [
    {"_id": "1", "rmaNumber": "RMA-1", "siteName": "Site 1", "productName": "P1",
     "rmaReturnTrackingNumber": "D30048484", "rmaReturnShippedThru": "DTDC",
     "rmaReturnShippedDate": "2024-01-20"},
    {"_id": "2", "rmaNumber": "RMA-2"},
]


def test_active_shipments_envelope_has_direct_shipments_field():
    payload = get_active_shipments(InMemoryRecordSource(RECORDS))

    assert payload["success"] is True
    assert payload["count"] == 1
    assert "data" not in payload
    shipment = payload["shipments"][0]
    assert shipment["rmaId"] == "1"
    assert shipment["outbound"] is None
    assert shipment["return"]["trackingNumber"] == "D30048484"
    assert shipment["return"]["carrier"] == "DTDC"
    assert shipment["return"]["shippedDate"] == "2024-01-20"
    assert shipment["return"]["status"] == "in_transit"
    assert shipment["return"]["sourceFieldSet"] == "legacy"
    validate_shipments_response(payload)


def test_active_shipments_upstream_failure_is_not_a_partial_success():
    source = mock.Mock()
    source.all.side_effect = UpstreamFetchFailure("connection refused")

    with pytest.raises(UpstreamFetchFailure):
        get_active_shipments(source)


def test_tracking_envelope():
    payload = get_rma_tracking(InMemoryRecordSource(RECORDS), "2")

    assert payload["success"] is True
    assert payload["tracking"]["outbound"] is None
    assert payload["tracking"]["return"] is None
    assert payload["tracking"]["rmaNumber"] == "RMA-2"


def test_tracking_envelope_errors():
    source = InMemoryRecordSource(RECORDS)

    with pytest.raises(InvalidArgument):
        get_rma_tracking(source, "")
    with pytest.raises(NotFound):
        get_rma_tracking(source, "nope")


def test_sla_breaches_envelope():
    payload = get_sla_breaches(InMemoryRecordSource(RECORDS), target_days=5, now=date(2024, 1, 28))

    assert payload["count"] == 1
    assert payload["breaches"][0]["sla"]["daysElapsed"] == 8
    assert payload["breaches"][0]["sla"]["breached"] is True


def test_find_rma_by_tracking_number_envelope():
    payload = find_rma_by_tracking_number(InMemoryRecordSource(RECORDS), "d30048484")

    assert payload["rma"]["id"] == "1"
    assert payload["rma"]["direction"] == "return"


def test_delivery_providers_list_is_a_copy():
    first = get_delivery_providers()
    first["providers"].clear()

    names = [p["name"] for p in get_delivery_providers()["providers"]]

    assert names == ["Blue Dart", "DTDC", "FedEx", "DHL", "India Post", "Delhivery"]


@pytest.mark.parametrize(
    "exc, status",
    [
        (InvalidArgument("missing id"), 400),
        (NotFound("gone"), 404),
        (UpstreamFetchFailure("down"), 502),
    ],
)
def test_error_response_status_codes(exc, status):
    payload = error_response(exc)

    assert payload == {"success": False, "error": str(exc), "status": status}


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"success": False, "count": 0, "shipments": []},
        {"success": True, "data": {"shipments": [], "count": 0}},
        {"success": True, "count": 0},
        {"success": True, "count": 1, "shipments": {}},
        {"success": True, "count": 2, "shipments": [{}]},
    ],
)
def test_validate_shipments_response_rejects_other_shapes(payload):
    with pytest.raises(ValueError):
        validate_shipments_response(payload)
