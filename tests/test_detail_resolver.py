# tests/test_detail_resolver.py

from datetime import datetime
from unittest import mock

import pytest

from rma_shipment_recon.detail_resolver import resolve_by_tracking_number, resolve_detail
from rma_shipment_recon.errors import InvalidArgument, NotFound, UpstreamFetchFailure
from rma_shipment_recon.models import SourceFieldSet, TrackingStatus
from rma_shipment_recon.record_source import InMemoryRecordSource

RECORDS = [
    {
        "_id": "rma-1",
        "rmaNumber": "RMA-001",
        "trackingNumber": "OUT-1",
        "shippedThru": "by hand",
        "shippedDate": "2024-03-01",
        "shipping": {
            "return": {
                "trackingNumber": "RET-1",
                "carrier": "FedEx",
                "shippedDate": "2024-03-05",
                "actualDelivery": "2024-03-07",
            }
        },
        "trackingHistory": [{"status": "delivered", "direction": "return"}],
    },
    {"_id": "rma-2", "rmaNumber": "RMA-002"},
]


def test_resolve_detail_returns_both_legs():
    source = InMemoryRecordSource(RECORDS)
    now = datetime(2024, 3, 10, 12, 0, 0)

    detail = resolve_detail(source, "rma-1", now=now)

    assert detail.rma_number == "RMA-001"
    assert detail.outbound.carrier == "By Hand"
    assert detail.outbound.source_field_set is SourceFieldSet.LEGACY
    assert detail.outbound.status is TrackingStatus.IN_TRANSIT
    assert detail.return_leg.status is TrackingStatus.DELIVERED
    assert detail.tracking_history == ({"status": "delivered", "direction": "return"},)
    assert detail.to_dict()["lastUpdated"] == "2024-03-10T12:00:00"


def test_resolve_detail_without_tracking_is_not_an_error():
    detail = resolve_detail(InMemoryRecordSource(RECORDS), "rma-2")

    assert detail.outbound is None
    assert detail.return_leg is None
    assert detail.to_dict()["outbound"] is None
    assert detail.to_dict()["return"] is None


@pytest.mark.parametrize("rma_id", ["", "   ", None])
def test_resolve_detail_blank_identifier_is_invalid_argument(rma_id):
    source = mock.Mock()

    with pytest.raises(InvalidArgument):
        resolve_detail(source, rma_id)

    # fail fast: no fetch attempted
    source.get.assert_not_called()


def test_resolve_detail_unknown_identifier_is_not_found():
    with pytest.raises(NotFound):
        resolve_detail(InMemoryRecordSource(RECORDS), "rma-404")


def test_invalid_argument_is_not_a_not_found():
    with pytest.raises(InvalidArgument) as excinfo:
        resolve_detail(InMemoryRecordSource(RECORDS), "")

    assert not isinstance(excinfo.value, NotFound)


def test_resolve_detail_propagates_upstream_failure():
    source = mock.Mock()
    source.get.side_effect = UpstreamFetchFailure("timeout")

    with pytest.raises(UpstreamFetchFailure):
        resolve_detail(source, "rma-1")


def test_resolve_by_tracking_number():
    record, leg = resolve_by_tracking_number(InMemoryRecordSource(RECORDS), "RET-1")

    assert record["rmaNumber"] == "RMA-001"
    assert leg.carrier == "FedEx"


def test_resolve_by_tracking_number_errors():
    source = InMemoryRecordSource(RECORDS)

    with pytest.raises(InvalidArgument):
        resolve_by_tracking_number(source, " ")
    with pytest.raises(NotFound):
        resolve_by_tracking_number(source, "MISSING")
