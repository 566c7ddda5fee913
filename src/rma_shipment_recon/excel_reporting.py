# src/rma_shipment_recon/excel_reporting.py

"""
Tabular and Excel reporting layer.

This module is responsible for:
- flattening the active shipments read-model into a pandas DataFrame
  (one row per present leg, SLA columns included),
- flattening SLA breach entries into a second DataFrame,
- writing both into an Excel workbook,
- applying:
    - column widths,
    - text wrapping,
    - frozen header row.
"""

from __future__ import annotations

from datetime import date as _date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from .config import BREACH_COLS, REPORT_COLS, SHEET_ACTIVE_SHIPMENTS, SHEET_SLA_BREACHES, SLA_THRESHOLDS
from .models import ActiveShipmentEntry
from .sla_evaluator import evaluate_breach

# Column widths per header; anything not listed gets DEFAULT_COL_WIDTH
COL_WIDTHS = {
    "RMA Number": 16,
    "Site Name": 40,
    "Product Name": 30,
    "Direction": 11,
    "Tracking Number": 22,
    "Carrier": 14,
    "Shipped Date": 14,
    "Estimated Delivery": 18,
    "Actual Delivery": 16,
    "Status": 13,
    "Source": 10,
    "Days Elapsed": 13,
    "SLA Breached": 13,
    "Target Days": 12,
    "Reason": 70,
}
DEFAULT_COL_WIDTH = 15


def shipments_to_frame(
    entries: Iterable[ActiveShipmentEntry],
    target_days: Optional[int] = None,
    now: Optional[_date] = None,
) -> pd.DataFrame:
    """
    One row per present leg, in entry order (outbound before return).
    """
    target = target_days if target_days is not None else SLA_THRESHOLDS.target_delivery_days
    rows: List[Dict[str, Any]] = []

    for entry in entries:
        for leg in (entry.outbound, entry.return_leg):
            if leg is None:
                continue
            sla = evaluate_breach(leg, target, now=now)
            rows.append(
                {
                    "RMA Number": entry.rma_number or "",
                    "Site Name": entry.site_name or "",
                    "Product Name": entry.product_name or "",
                    "Direction": leg.direction.value,
                    "Tracking Number": leg.tracking_number,
                    "Carrier": leg.carrier or "",
                    "Shipped Date": leg.shipped_date,
                    "Estimated Delivery": leg.estimated_delivery,
                    "Actual Delivery": leg.actual_delivery,
                    "Status": leg.status.value,
                    "Source": leg.source_field_set.value,
                    "Days Elapsed": sla.days_elapsed,
                    "SLA Breached": sla.breached,
                }
            )

    return pd.DataFrame(rows, columns=REPORT_COLS)


def breaches_to_frame(breaches: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    Flatten `find_sla_breaches` output.
    """
    rows = [
        {
            "RMA Number": b.get("rmaNumber") or "",
            "Site Name": b.get("siteName") or "",
            "Direction": b.get("direction", ""),
            "Tracking Number": b["leg"].get("trackingNumber", ""),
            "Carrier": b["leg"].get("carrier") or "",
            "Days Elapsed": b["sla"].get("daysElapsed"),
            "Target Days": b["sla"].get("targetDays"),
            "Reason": b["sla"].get("reason", ""),
        }
        for b in breaches
    ]
    return pd.DataFrame(rows, columns=BREACH_COLS)


def apply_column_layout(ws, columns: List[str]) -> None:
    """
    Apply column widths by header name.
    """
    for idx, name in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = COL_WIDTHS.get(name, DEFAULT_COL_WIDTH)


def apply_wrap_and_freeze(ws, freeze_cell: str = "A2") -> None:
    """
    Enable word-wrap, bold the header and freeze the header row.
    """
    for row in ws.iter_rows():
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical="top")
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.freeze_panes = freeze_cell


def save_tracking_report(
    shipments_df: pd.DataFrame,
    breaches_df: pd.DataFrame,
    output_path: Path,
) -> None:
    """
    Persist the tracking report to an Excel workbook with two tabs:

    1) "Active Shipments"
    2) "SLA Breaches"

    Notes
    -----
    This function overwrites the file if it already exists.
    The caller is responsible for archiving or versioning.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        shipments_df.to_excel(writer, sheet_name=SHEET_ACTIVE_SHIPMENTS, index=False)
        breaches_df.to_excel(writer, sheet_name=SHEET_SLA_BREACHES, index=False)

        book = writer.book
        for sheet_name, frame in (
            (SHEET_ACTIVE_SHIPMENTS, shipments_df),
            (SHEET_SLA_BREACHES, breaches_df),
        ):
            ws = book[sheet_name]
            apply_column_layout(ws, list(frame.columns))
            apply_wrap_and_freeze(ws, freeze_cell="A2")
