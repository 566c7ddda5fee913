# src/rma_shipment_recon/errors.py

"""
Error taxonomy of the tracking engine.

Structural failures are raised and surfaced to the caller immediately:
- InvalidArgument: the caller passed an empty/missing identifier,
- NotFound: a well-formed identifier does not resolve to a record,
- UpstreamFetchFailure: the record source failed (timeout, connection, bad body).

Per-record data problems are NOT exceptions: they are reported as
PartialDataWarning values attached to the affected leg.
"""

from __future__ import annotations

from dataclasses import dataclass


class TrackingEngineError(Exception):
    """Base exception for tracking engine errors"""

    status_code = 500


class InvalidArgument(TrackingEngineError, ValueError):
    """Raised when the caller supplies an empty or missing identifier"""

    status_code = 400


class NotFound(TrackingEngineError, LookupError):
    """Raised when an identifier does not resolve to any stored record"""

    status_code = 404


class UpstreamFetchFailure(TrackingEngineError):
    """Raised when the record source cannot deliver records"""

    status_code = 502


@dataclass(frozen=True)
class PartialDataWarning:
    """
    Non-fatal note about a record that could only be classified best-effort.

    Attributes
    ----------
    code:
        'unparseable_date' or 'legacy_conflict'.
    field:
        Raw field name the warning refers to (e.g. 'rmaReturnShippedDate').
    message:
        Human-readable explanation.
    """

    code: str
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"code": self.code, "field": self.field, "message": self.message}
