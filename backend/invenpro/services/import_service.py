# Overview: Service-layer operations for bulk catalog import; CSV / XLSX parsing and product creation.

from __future__ import annotations

import csv
import io
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..extensions import db
from ..models import Product
from .audit_service import append_audit_entry
from invenpro.time_utils import utcnow
"""
Bulk import rules

File layout: header row, then one product per line in the column order
    Name, SKU, Category, SellingPrice, Quantity, HSNCode
- Standard CSV quoting: commas inside double quotes stay in the cell and
  "" reads as one quote. Cells are trimmed.
- The first line is always treated as the header. Blank lines are ignored.
- Rows with fewer than 2 columns are dropped (counted as skipped).
- Rows whose SKU already exists in the catalog, or earlier in the same file,
  are skipped too (SKU is unique).
- Non-numeric prices and quantities read as 0. Purchase price is 70% of the
  selling price.
- Missing cells take the bulk-import defaults below.
- A single BULK_IMPORT audit entry is written when at least one row lands.
"""

logger = logging.getLogger(__name__)

TEMPLATE_HEADER = "Name,SKU,Category,SellingPrice,Quantity,HSNCode"
TEMPLATE_SAMPLE_ROW = "Example Product,SKU-101,Hardware,499.00,50,94054090"
TEMPLATE_FILENAME = "invenpro_template.csv"

DEFAULT_NAME = "Unknown Item"
DEFAULT_CATEGORY = "General"
DEFAULT_HSN = "94054090"
DEFAULT_BRAND = "Imported"
DEFAULT_UOM = "NOS"
DEFAULT_MIN_STOCK = 5
DEFAULT_MAX_STOCK = 1000
DEFAULT_DESCRIPTION = "Bulk imported item."

# Purchase price as a fraction of selling price, in tenths
PURCHASE_PRICE_TENTHS = 7

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")


class CatalogImportError(ValueError):
    """Raised when an upload cannot be read at all."""


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    products: list[Product] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "items": [p.to_dict() for p in self.products],
        }


def template_csv() -> str:
    return f"{TEMPLATE_HEADER}\n{TEMPLATE_SAMPLE_ROW}"


def _leading_number(value: str | None) -> float:
    if not value:
        return 0.0
    m = _LEADING_NUMBER.match(str(value).strip())
    if not m:
        return 0.0
    return float(m.group(0))


def parse_price_cents(value: str | None) -> int:
    """'499.00' -> 49900; garbage -> 0. Half-up to the cent."""
    amount = _leading_number(value)
    cents = int(abs(amount) * 100 + 0.5)
    return -cents if amount < 0 else cents


def parse_quantity(value: str | None) -> int:
    """Integer part of the leading number; '50.7' -> 50, 'abc' -> 0."""
    return int(_leading_number(value))


def purchase_price_from_selling(selling_price_cents: int) -> int:
    return (selling_price_cents * PURCHASE_PRICE_TENTHS + 5) // 10


def parse_csv_rows(text: str) -> tuple[list[tuple[int, list[str]]], int]:
    """
    Split an uploaded CSV into (line_index, columns) rows.

    Returns (rows, dropped) where dropped counts non-blank lines with fewer
    than two columns. The header (line 0) is never returned.
    """
    rows: list[tuple[int, list[str]]] = []
    dropped = 0
    reader = csv.reader(io.StringIO(text or ""))
    try:
        for i, raw in enumerate(reader):
            if i == 0:
                continue
            cols = [c.strip() for c in raw]
            if not any(cols) and len(cols) <= 1:
                continue
            if len(cols) < 2:
                dropped += 1
                continue
            rows.append((i, cols))
    except csv.Error as e:
        raise CatalogImportError(f"Could not read CSV line {reader.line_num}") from e
    return rows, dropped


def product_patch_from_row(cols: list[str], index: int, *, warehouse_id: str) -> dict:
    def col(n: int) -> str:
        return cols[n] if len(cols) > n else ""

    selling = parse_price_cents(col(3))
    return {
        "name": col(0) or DEFAULT_NAME,
        "sku": col(1) or f"SKU-{int(time.time() * 1000)}-{index}",
        "category": col(2) or DEFAULT_CATEGORY,
        "selling_price_cents": selling,
        "purchase_price_cents": purchase_price_from_selling(selling),
        "quantity": parse_quantity(col(4)),
        "hsn_code": col(5) or DEFAULT_HSN,
        "brand": DEFAULT_BRAND,
        "uom": DEFAULT_UOM,
        "min_stock": DEFAULT_MIN_STOCK,
        "max_stock": DEFAULT_MAX_STOCK,
        "warehouse_id": warehouse_id,
        "description": DEFAULT_DESCRIPTION,
    }


def _import_rows(
    rows: Iterable[tuple[int, list[str]]],
    *,
    dropped: int,
    actor: str | None,
    warehouse_id: str,
) -> ImportResult:
    result = ImportResult(skipped=dropped)
    existing = {sku for (sku,) in db.session.query(Product.sku).all()}

    patches = []
    for index, cols in rows:
        patch = product_patch_from_row(cols, index, warehouse_id=warehouse_id)
        if patch["sku"] in existing:
            result.skipped += 1
            continue
        existing.add(patch["sku"])
        patches.append(patch)

    if not patches:
        return result

    now = utcnow()
    try:
        # Insert last-to-first so the newest-first catalog shows file order
        for patch in reversed(patches):
            p = Product(created_at=now, last_updated=now, **patch)
            db.session.add(p)
            db.session.flush()
            result.products.insert(0, p)

        result.imported = len(result.products)
        append_audit_entry(
            action="BULK_IMPORT",
            details=f"Imported {result.imported} items via CSV file.",
            actor=actor,
            timestamp=now,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("bulk import: %d imported, %d skipped", result.imported, result.skipped)
    return result


def import_products_csv(text: str, *, actor: str | None = None, warehouse_id: str = "WH-001") -> ImportResult:
    rows, dropped = parse_csv_rows(text)
    return _import_rows(rows, dropped=dropped, actor=actor, warehouse_id=warehouse_id)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def import_products_xlsx(stream, *, actor: str | None = None, warehouse_id: str = "WH-001") -> ImportResult:
    """Same column layout as the CSV template, read from the active sheet."""
    from openpyxl import load_workbook

    try:
        wb = load_workbook(stream, data_only=True, read_only=True)
    except Exception as e:
        raise CatalogImportError("Could not read spreadsheet") from e

    rows: list[tuple[int, list[str]]] = []
    dropped = 0
    try:
        for i, values in enumerate(wb.active.iter_rows(values_only=True)):
            if i == 0:
                continue
            cols = [_cell_text(v) for v in values]
            while cols and cols[-1] == "":
                cols.pop()
            if not cols:
                continue
            if len(cols) < 2:
                dropped += 1
                continue
            rows.append((i, cols))
    finally:
        # Read-only workbooks hold the source open until closed
        wb.close()

    return _import_rows(rows, dropped=dropped, actor=actor, warehouse_id=warehouse_id)


def decode_upload(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CatalogImportError("File must be UTF-8 encoded text") from e


def read_upload(filename: str, stream, *, actor: str | None = None, warehouse_id: str = "WH-001") -> ImportResult:
    ext = (filename or "").rsplit(".", 1)[-1].lower()
    if ext == "csv":
        return import_products_csv(decode_upload(stream.read()), actor=actor, warehouse_id=warehouse_id)
    if ext in {"xlsx", "xlsm"}:
        return import_products_xlsx(io.BytesIO(stream.read()), actor=actor, warehouse_id=warehouse_id)
    raise CatalogImportError("Unsupported file format")
