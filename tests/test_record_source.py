# tests/test_record_source.py

import json
from unittest import mock

import pytest
import requests

from rma_shipment_recon.config import SourceConfig
from rma_shipment_recon.errors import UpstreamFetchFailure
from rma_shipment_recon.record_source import HttpRecordSource, InMemoryRecordSource


def _response(status=200, payload=None, json_error=False):
    resp = mock.Mock()
    resp.status_code = status
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}")
    else:
        resp.raise_for_status.return_value = None
    return resp


def _source(resp=None, exc=None, token=""):
    session = mock.Mock()
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value = resp
    config = SourceConfig(base_url="https://rma.example/api/", token=token, timeout_s=3.0)
    return HttpRecordSource(config, session=session), session


def test_in_memory_source_get_and_all():
    source = InMemoryRecordSource([{"_id": "a"}, {"id": "b"}])

    assert source.get("b") == {"id": "b"}
    assert source.get("zzz") is None
    assert len(source.all()) == 2


def test_in_memory_source_from_json_file(tmp_path):
    path = tmp_path / "rmas.json"
    path.write_text(json.dumps({"rmas": [{"_id": "a", "trackingNumber": "T"}]}), encoding="utf-8")

    source = InMemoryRecordSource.from_json_file(path)

    assert source.get("a")["trackingNumber"] == "T"


def test_in_memory_source_bad_file_is_upstream_failure(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(UpstreamFetchFailure):
        InMemoryRecordSource.from_json_file(path)


def test_http_all_accepts_bare_list_and_sends_timeout_and_token():
    source, session = _source(_response(payload=[{"_id": "a"}]), token="secret")

    records = source.all()

    assert records == [{"_id": "a"}]
    url = session.get.call_args.args[0]
    kwargs = session.get.call_args.kwargs
    assert url == "https://rma.example/api/rma"
    assert kwargs["timeout"] == 3.0
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_http_all_accepts_wrapped_list():
    source, _ = _source(_response(payload={"data": [{"_id": "a"}]}))

    assert source.all() == [{"_id": "a"}]


def test_http_get_404_is_none():
    source, session = _source(_response(status=404))

    assert source.get("missing") is None
    assert session.get.call_args.args[0] == "https://rma.example/api/rma/missing"


def test_http_get_escapes_identifier_in_path():
    source, session = _source(_response(status=404))

    source.get("a/b?c=1")

    assert session.get.call_args.args[0] == "https://rma.example/api/rma/a%2Fb%3Fc%3D1"


def test_http_get_unwraps_rma_field():
    source, _ = _source(_response(payload={"rma": {"_id": "a"}}))

    assert source.get("a") == {"_id": "a"}


def test_http_timeout_is_upstream_failure():
    source, _ = _source(exc=requests.Timeout("slow"))

    with pytest.raises(UpstreamFetchFailure) as excinfo:
        source.all()

    assert isinstance(excinfo.value.__cause__, requests.Timeout)


def test_http_server_error_is_upstream_failure():
    source, session = _source(_response(status=503))

    with pytest.raises(UpstreamFetchFailure):
        source.get("a")

    # no internal retry
    assert session.get.call_count == 1


def test_http_non_json_body_is_upstream_failure():
    source, _ = _source(_response(json_error=True))

    with pytest.raises(UpstreamFetchFailure):
        source.all()


def test_http_source_requires_base_url():
    with pytest.raises(ValueError):
        HttpRecordSource(SourceConfig(base_url=""))


def test_source_config_from_env(monkeypatch):
    monkeypatch.setenv("RMA_API_BASE_URL", "https://x/api")
    monkeypatch.setenv("RMA_API_TIMEOUT_S", "7.5")
    monkeypatch.delenv("RMA_API_TOKEN", raising=False)

    config = SourceConfig.from_env()

    assert config.base_url == "https://x/api"
    assert config.timeout_s == 7.5
    assert config.token == ""
