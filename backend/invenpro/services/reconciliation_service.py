# Overview: Document-to-stock reconciliation; applies a finalized document to the catalog and ledgers.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..extensions import db
from ..models import AuditLogEntry, DocumentRecord, Product, StockMovement
from .audit_service import append_audit_entry
from .document_service import record_document
from .inventory_service import record_movement_batch
from .products_service import apply_quantity_delta
from invenpro.time_utils import utcnow
"""
Reconciliation Invariants (authoritative)

Classification:
- Increases stock (+1): PURCHASE_BILL, GRN, CREDIT_NOTE, ADJUSTMENT_BILL
- Decreases stock (-1): SALES_BILL, DELIVERY_CHALLAN, DEBIT_NOTE
- Neutral (0): PO, SO and any type not listed (CREDIT_DEBIT_NOTE included)

Applying a document, as ONE transaction:
1. For a non-neutral type, every catalog product referenced by at least one line
   moves by multiplier * (sum of its line quantities) and gets last_updated = now.
   PURCHASE_BILL alone also overwrites purchase_price_cents with the price of the
   first line referencing the product. selling_price_cents is never touched.
2. For a non-neutral type, one movement per line whose product exists:
   unsigned quantity, type = doc_type, reason "Auto-logged from <type> <no>",
   doc_ref = doc_no, warehouse_id taken from the product. The batch reads back
   in line order ahead of older movements.
3. The document is appended to the document ledger (always).
4. One DOC_GENERATION audit entry is appended (always).

Lines whose product does not exist change nothing and emit no movement; the
rest of the document still applies. Nothing here is idempotent: applying the
same document twice doubles its effect. There is no lower bound on quantity.
"""

logger = logging.getLogger(__name__)

STOCK_INCREASING_TYPES = frozenset({"PURCHASE_BILL", "GRN", "CREDIT_NOTE", "ADJUSTMENT_BILL"})
STOCK_DECREASING_TYPES = frozenset({"SALES_BILL", "DELIVERY_CHALLAN", "DEBIT_NOTE"})


@dataclass
class ReconciliationResult:
    document: DocumentRecord
    updated_products: list[Product] = field(default_factory=list)
    movements: list[StockMovement] = field(default_factory=list)
    audit_entry: AuditLogEntry | None = None
    skipped_product_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "document": self.document.to_dict(),
            "updated_products": [p.to_dict() for p in self.updated_products],
            "movements": [m.to_dict() for m in self.movements],
            "audit_entry": self.audit_entry.to_dict() if self.audit_entry else None,
            "skipped_product_ids": list(self.skipped_product_ids),
        }


def quantity_multiplier(doc_type: str) -> int:
    if doc_type in STOCK_INCREASING_TYPES:
        return 1
    if doc_type in STOCK_DECREASING_TYPES:
        return -1
    return 0


def _apply_stock_effect(doc: DocumentRecord, multiplier: int, now) -> ReconciliationResult:
    result = ReconciliationResult(document=doc)

    product_ids = {line.product_id for line in doc.lines}
    catalog = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    } if product_ids else {}

    deltas: dict[str, int] = {}
    first_price: dict[str, int] = {}
    movement_rows = []

    for line in doc.lines:
        product = catalog.get(line.product_id)
        if product is None:
            if line.product_id not in result.skipped_product_ids:
                result.skipped_product_ids.append(line.product_id)
            continue

        deltas[product.id] = deltas.get(product.id, 0) + line.quantity * multiplier
        first_price.setdefault(product.id, line.price_cents)

        movement_rows.append({
            "product_id": product.id,
            "product_name": line.name,
            "type": doc.doc_type,
            "quantity": line.quantity,
            "reason": f"Auto-logged from {doc.doc_type} {doc.doc_no}",
            "doc_ref": doc.doc_no,
            "warehouse_id": product.warehouse_id,
        })

    for product_id, delta in deltas.items():
        product = catalog[product_id]
        apply_quantity_delta(product, delta, at=now)
        if doc.doc_type == "PURCHASE_BILL":
            product.purchase_price_cents = first_price[product_id]
        result.updated_products.append(product)

    result.movements = record_movement_batch(movement_rows, timestamp=now)
    return result


def apply_document(doc: DocumentRecord, *, actor: str | None = None) -> ReconciliationResult:
    """
    Apply a finalized document to catalog, movement, document and audit ledgers.

    Commits once; on any failure the session is rolled back and none of the
    four stores change.
    """
    now = utcnow()
    multiplier = quantity_multiplier(doc.doc_type)

    try:
        if multiplier != 0:
            result = _apply_stock_effect(doc, multiplier, now)
        else:
            result = ReconciliationResult(document=doc)

        record_document(doc)

        result.audit_entry = append_audit_entry(
            action="DOC_GENERATION",
            details=f"Generated {doc.doc_type} [{doc.doc_no}] for {doc.partner_name}",
            actor=actor,
            timestamp=now,
        )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if result.skipped_product_ids:
        logger.warning(
            "document %s referenced unknown products, lines skipped: %s",
            doc.doc_no,
            ", ".join(result.skipped_product_ids),
        )
    logger.info(
        "applied %s %s: %d products updated, %d movements",
        doc.doc_type,
        doc.doc_no,
        len(result.updated_products),
        len(result.movements),
    )
    return result
