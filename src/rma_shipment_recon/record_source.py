# src/rma_shipment_recon/record_source.py

"""
Read-only access to RMA records.

The engine itself performs no I/O; callers fetch records through one of
these sources and hand them to the pure functions in core_reconciliation.

Sources:
- InMemoryRecordSource: a snapshot already in memory (or loaded from JSON),
- HttpRecordSource: the RMA REST API, fetched with `requests`.

Failure policy:
- a missing record is `None`, not an error,
- transport/HTTP/body failures become UpstreamFetchFailure,
- nothing is retried here; retries belong to the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests  # type: ignore[import-untyped]

from .config import SourceConfig
from .core_reconciliation import record_id
from .errors import UpstreamFetchFailure

logger = logging.getLogger(__name__)


class RmaRecordSource(Protocol):
    def all(self) -> List[Dict[str, Any]]:
        ...

    def get(self, rma_id: str) -> Optional[Dict[str, Any]]:
        ...


class InMemoryRecordSource:
    """
    Record source over an in-memory list of RMA records.
    """

    def __init__(self, records: Sequence[Dict[str, Any]]) -> None:
        self._records = list(records)

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryRecordSource":
        """
        Load a JSON export: either a list of records or {'rmas': [...]}.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as exc:
            raise UpstreamFetchFailure(f"Could not read RMA records from {path}: {exc}") from exc
        return cls(_unwrap_records(payload, origin=str(path)))

    def all(self) -> List[Dict[str, Any]]:
        return list(self._records)

    def get(self, rma_id: str) -> Optional[Dict[str, Any]]:
        for record in self._records:
            if isinstance(record, dict) and record_id(record) == rma_id:
                return record
        return None


def _unwrap_records(payload: Any, origin: str) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("rmas", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise UpstreamFetchFailure(f"Unexpected RMA list payload from {origin}")


class HttpRecordSource:
    """
    Record source backed by the RMA REST API.

    Endpoints:
        GET {base_url}/rma        -> list (bare or wrapped in 'rmas'/'data')
        GET {base_url}/rma/{id}   -> one record, 404 when unknown
    """

    def __init__(self, config: SourceConfig, session: Optional[requests.Session] = None) -> None:
        if not config.base_url:
            raise ValueError("SourceConfig.base_url is required (set RMA_API_BASE_URL).")
        self.config = config
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    def _get(self, path: str) -> Optional[Any]:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            resp = self._session.get(url, headers=self._headers(), timeout=self.config.timeout_s)
        except requests.RequestException as exc:
            logger.error("RMA fetch failed: GET %s (%s)", url, exc)
            raise UpstreamFetchFailure(f"GET {url} failed: {exc}") from exc

        if resp.status_code == 404:
            return None

        try:
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as exc:
            logger.error("RMA fetch failed: GET %s -> HTTP %s", url, resp.status_code)
            raise UpstreamFetchFailure(f"GET {url} returned HTTP {resp.status_code}") from exc
        except ValueError as exc:
            raise UpstreamFetchFailure(f"GET {url} returned a non-JSON body") from exc

    def all(self) -> List[Dict[str, Any]]:
        payload = self._get("rma")
        if payload is None:
            raise UpstreamFetchFailure("RMA list endpoint returned 404")
        return _unwrap_records(payload, origin=self.config.base_url)

    def get(self, rma_id: str) -> Optional[Dict[str, Any]]:
        payload = self._get(f"rma/{requests.utils.quote(str(rma_id), safe='')}")
        if payload is None:
            return None
        if isinstance(payload, dict) and isinstance(payload.get("rma"), dict):
            return payload["rma"]
        if not isinstance(payload, dict):
            raise UpstreamFetchFailure(f"Unexpected RMA payload for {rma_id}")
        return payload
