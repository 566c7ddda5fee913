"""
RMA shipment tracking reconciliation engine.
"""

from .core_reconciliation import aggregate_active, classify, extract_legs
from .detail_resolver import resolve_detail
from .legacy_fields import normalize_legacy_fields
from .sla_evaluator import evaluate_breach

__version__ = "0.1.0"

__all__ = [
    "aggregate_active",
    "classify",
    "evaluate_breach",
    "extract_legs",
    "normalize_legacy_fields",
    "resolve_detail",
]
