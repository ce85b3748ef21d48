# Overview: CSV exports of the document, audit and movement ledgers.

from __future__ import annotations

import csv
import io
from typing import Iterable

from ..models import AuditLogEntry, DocumentRecord, StockMovement
from invenpro.time_utils import to_csv_stamp

BILLING_HEADERS = ["Doc No", "Type", "Date", "Partner", "Items Count", "Tax", "Total"]
AUDIT_HEADERS = ["Timestamp", "Action", "Details", "User"]
MOVEMENT_HEADERS = ["Timestamp", "Product", "Type", "Quantity", "Reason", "Doc Ref", "Warehouse"]


def format_cents(cents: int) -> str:
    """12345 -> '123.45'"""
    sign = "-" if cents < 0 else ""
    cents = abs(int(cents))
    return f"{sign}{cents // 100}.{cents % 100:02d}"


def _write_csv(headers: list[str], rows: Iterable[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def billing_history_csv(documents: Iterable[DocumentRecord]) -> str:
    return _write_csv(
        BILLING_HEADERS,
        (
            [
                d.doc_no,
                d.doc_type,
                to_csv_stamp(d.timestamp),
                d.partner_name,
                len(d.lines),
                format_cents(d.tax_cents),
                format_cents(d.total_cents),
            ]
            for d in documents
        ),
    )


def audit_log_csv(entries: Iterable[AuditLogEntry]) -> str:
    return _write_csv(
        AUDIT_HEADERS,
        ([to_csv_stamp(e.timestamp), e.action, e.details, e.user] for e in entries),
    )


def movements_csv(movements: Iterable[StockMovement]) -> str:
    return _write_csv(
        MOVEMENT_HEADERS,
        (
            [
                to_csv_stamp(m.timestamp),
                m.product_name,
                m.type,
                m.quantity,
                m.reason,
                m.doc_ref or "",
                m.warehouse_id,
            ]
            for m in movements
        ),
    )
