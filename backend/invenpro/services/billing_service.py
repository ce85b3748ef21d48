# Overview: Billing workspace; composes, validates and commits commercial documents.

"""
Billing Workspace

A draft (JSON-shaped dict) becomes a DocumentRecord here and is handed to the
reconciliation engine. Rules:

- doc_type: one of the eight document types, or CREDIT_NOTE / DEBIT_NOTE.
- partner_name is required for every document type.
- At least one line; every line quantity in 1..1,000,000.
- Lines must reference catalog products. Name, HSN and UOM are copied from
  the product; the unit price defaults to the purchase price for
  PURCHASE_BILL and to the selling price otherwise, and can be overridden.
- SALES_BILL and DELIVERY_CHALLAN may not take more than the product has on
  hand (summed across lines for the same product).
- Totals (integer cents, half-up):
    subtotal = sum(price * qty)
    discount = subtotal * discount_bps / 10000
    taxable  = subtotal - discount
    tax      = taxable * tax_rate_bps / 10000
    total    = taxable + tax
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from flask import current_app, has_app_context

from ..extensions import db
from ..models import DocumentLine, DocumentRecord, Product
from ..models.documents import DOCUMENT_TYPES, NOTE_DOCUMENT_TYPES, PAYMENT_STATUSES
from ..validation import (
    ValidationError,
    enforce_rules_quantity,
    enforce_rules_rate_bps,
    MAX_PRICE_CENTS,
)
from .document_service import next_document_number
from .reconciliation_service import ReconciliationResult, apply_document
from invenpro.time_utils import utcnow

logger = logging.getLogger(__name__)

BILLABLE_DOCUMENT_TYPES = DOCUMENT_TYPES + NOTE_DOCUMENT_TYPES

# Types that take stock out and therefore need on-hand stock
STOCK_CHECKED_TYPES = ("SALES_BILL", "DELIVERY_CHALLAN")

DEFAULT_TAX_RATE_BPS = 1800

_TEXT_FIELDS = ("partner_contact", "gstin", "billing_address", "vehicle_no", "notes")


@dataclass(frozen=True)
class DocumentTotals:
    subtotal_cents: int
    discount_cents: int
    taxable_cents: int
    tax_cents: int
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "taxable_cents": self.taxable_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


def _apply_bps(amount_cents: int, bps: int) -> int:
    """amount * bps / 10000, rounded half-up to the cent."""
    return (amount_cents * bps + 5_000) // 10_000


def compute_totals(lines: Iterable, discount_bps: int = 0, tax_rate_bps: int = DEFAULT_TAX_RATE_BPS) -> DocumentTotals:
    """
    lines: objects with price_cents/quantity attributes, or dicts with those keys.
    """
    subtotal = 0
    for line in lines:
        if isinstance(line, dict):
            subtotal += int(line["price_cents"]) * int(line["quantity"])
        else:
            subtotal += line.price_cents * line.quantity

    discount = _apply_bps(subtotal, discount_bps)
    taxable = subtotal - discount
    tax = _apply_bps(taxable, tax_rate_bps)
    return DocumentTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        taxable_cents=taxable,
        tax_cents=tax,
        total_cents=taxable + tax,
    )


def _default_tax_rate_bps() -> int:
    if has_app_context():
        return int(current_app.config.get("DEFAULT_TAX_RATE_BPS", DEFAULT_TAX_RATE_BPS))
    return DEFAULT_TAX_RATE_BPS


def _optional_text(draft: dict, key: str) -> str | None:
    value = draft.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _line_price(raw: dict, product: Product, doc_type: str) -> int:
    if raw.get("price_cents") is None:
        if doc_type == "PURCHASE_BILL":
            return product.purchase_price_cents
        return product.selling_price_cents

    price = raw["price_cents"]
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValidationError("price_cents must be an integer")
    if price < 0 or price > MAX_PRICE_CENTS:
        raise ValidationError(f"price_cents must be between 0 and {MAX_PRICE_CENTS}")
    return price


def build_document(draft: dict) -> DocumentRecord:
    """
    Validate a draft and compose an unsaved DocumentRecord with its lines.

    Allocates the document number (flush only); nothing is committed.
    """
    if not isinstance(draft, dict):
        raise ValidationError("Invalid JSON payload")

    doc_type = (draft.get("doc_type") or "").strip().upper()
    if doc_type not in BILLABLE_DOCUMENT_TYPES:
        raise ValidationError(f"doc_type must be one of: {', '.join(BILLABLE_DOCUMENT_TYPES)}")

    partner_name = (draft.get("partner_name") or "").strip()
    if not partner_name:
        raise ValidationError("partner_name is required")

    payment_status = (draft.get("payment_status") or "PAID").strip().upper()
    if payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")

    discount_bps = enforce_rules_rate_bps(draft.get("discount_bps", 0), field="discount_bps")
    tax_rate_bps = draft.get("tax_rate_bps")
    if tax_rate_bps is None:
        tax_rate_bps = _default_tax_rate_bps()
    tax_rate_bps = enforce_rules_rate_bps(tax_rate_bps, field="tax_rate_bps")

    items = draft.get("items") or []
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    product_ids = []
    for raw in items:
        if not isinstance(raw, dict) or not raw.get("product_id"):
            raise ValidationError("Each item needs a product_id")
        product_ids.append(str(raw["product_id"]))

    catalog = {
        p.id: p for p in db.session.query(Product).filter(Product.id.in_(set(product_ids))).all()
    }

    lines: list[DocumentLine] = []
    requested: dict[str, int] = {}
    for line_no, (raw, product_id) in enumerate(zip(items, product_ids), start=1):
        product = catalog.get(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} not found")

        quantity = enforce_rules_quantity(raw.get("quantity"))
        requested[product_id] = requested.get(product_id, 0) + quantity

        lines.append(
            DocumentLine(
                line_no=line_no,
                product_id=product.id,
                name=product.name,
                hsn=product.hsn_code,
                uom=product.uom,
                quantity=quantity,
                price_cents=_line_price(raw, product, doc_type),
            )
        )

    if doc_type in STOCK_CHECKED_TYPES:
        for product_id, quantity in requested.items():
            product = catalog[product_id]
            if quantity > product.quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.sku}: requested {quantity}, available {product.quantity}"
                )

    totals = compute_totals(lines, discount_bps, tax_rate_bps)

    doc = DocumentRecord(
        doc_type=doc_type,
        doc_no=next_document_number(doc_type=doc_type),
        partner_name=partner_name,
        payment_status=payment_status,
        discount_bps=discount_bps,
        tax_rate_bps=tax_rate_bps,
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        tax_cents=totals.tax_cents,
        total_cents=totals.total_cents,
        timestamp=utcnow(),
        **{k: _optional_text(draft, k) for k in _TEXT_FIELDS},
    )
    doc.lines = lines
    return doc


def commit_document(draft: dict, *, actor: str | None = None) -> ReconciliationResult:
    """Build a document from the draft and apply it (one transaction)."""
    try:
        doc = build_document(draft)
    except Exception:
        db.session.rollback()
        raise
    return apply_document(doc, actor=actor)
