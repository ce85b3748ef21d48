# Overview: Service-layer operations for the movement ledger; encapsulates business logic and database work.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..extensions import db
from ..models import Product, StockMovement
from ..validation import ValidationError, enforce_rules_quantity
from .audit_service import append_audit_entry
from .products_service import apply_quantity_delta, get_product
from invenpro.time_utils import utcnow
"""
Movement Ledger Invariants (authoritative)

- Append-only. Movements are never updated or deleted by services.
- quantity is UNSIGNED; direction is implied by type.
- Read order is newest first (seq DESC). A batch written together keeps its
  input order when read back, so a document's movements appear in line order
  ahead of everything older.
- product_id is a weak reference and product_name a snapshot.

Manual movements:
- Allowed types: PURCHASE, SALE, ADJUSTMENT, TRANSFER.
- Signed effect on the product: SALE -> -|q|; ADJUSTMENT with negative input -> -|q|;
  anything else -> +|q|.
- Reason is mandatory. Quantity must be > 0, except ADJUSTMENT which accepts
  a negative quantity to reduce stock.
"""

logger = logging.getLogger(__name__)

MANUAL_MOVEMENT_TYPES = ("PURCHASE", "SALE", "ADJUSTMENT", "TRANSFER")


def _build_movement(
    *,
    product_id: str,
    product_name: str,
    type: str,
    quantity: int,
    reason: str,
    doc_ref: Optional[str],
    warehouse_id: Optional[str],
    timestamp: datetime,
) -> StockMovement:
    return StockMovement(
        product_id=product_id,
        product_name=product_name,
        type=type,
        quantity=abs(int(quantity)),
        reason=reason,
        doc_ref=doc_ref,
        warehouse_id=warehouse_id or "",
        timestamp=timestamp,
    )


def record_movement(
    *,
    product_id: str,
    product_name: str,
    type: str,
    quantity: int,
    reason: str,
    doc_ref: Optional[str] = None,
    warehouse_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> StockMovement:
    """Append one movement (flush only)."""
    m = _build_movement(
        product_id=product_id,
        product_name=product_name,
        type=type,
        quantity=quantity,
        reason=reason,
        doc_ref=doc_ref,
        warehouse_id=warehouse_id,
        timestamp=timestamp or utcnow(),
    )
    db.session.add(m)
    db.session.flush()
    return m


def record_movement_batch(rows: Iterable[dict], *, timestamp: Optional[datetime] = None) -> list[StockMovement]:
    """
    Append several movements as one block (flush only).

    Rows are inserted last-to-first so that the newest-first read returns
    them in the order given. The returned list is in the order given.
    """
    at = timestamp or utcnow()
    movements = [_build_movement(timestamp=at, **{"doc_ref": None, "warehouse_id": None, **row}) for row in rows]
    for m in reversed(movements):
        db.session.add(m)
        db.session.flush()
    return movements


def list_movements(*, product_id: str | None = None, limit: int | None = None) -> list[StockMovement]:
    q = db.session.query(StockMovement)
    if product_id:
        q = q.filter(StockMovement.product_id == product_id)
    q = q.order_by(StockMovement.seq.desc())
    if limit is not None:
        q = q.limit(max(int(limit), 0))
    return q.all()


def signed_manual_delta(movement_type: str, quantity: int) -> int:
    if movement_type == "SALE" or (movement_type == "ADJUSTMENT" and quantity < 0):
        return -abs(quantity)
    return abs(quantity)


def record_manual_movement(
    *,
    product_id: str,
    type: str,
    quantity: int,
    reason: str,
    warehouse_id: str | None = None,
    actor: str | None = None,
) -> tuple[Product, StockMovement]:
    """
    Operator-initiated stock movement against one product.

    Updates the product quantity and appends one movement in a single commit.
    """
    movement_type = (type or "").strip().upper()
    if movement_type not in MANUAL_MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MANUAL_MOVEMENT_TYPES)}")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("reason is required")

    if movement_type == "ADJUSTMENT" and isinstance(quantity, int) and not isinstance(quantity, bool) and quantity < 0:
        enforce_rules_quantity(-quantity)
    else:
        enforce_rules_quantity(quantity)

    p = get_product(product_id)
    now = utcnow()
    delta = signed_manual_delta(movement_type, quantity)

    try:
        apply_quantity_delta(p, delta, at=now)
        m = record_movement(
            product_id=p.id,
            product_name=p.name,
            type=movement_type,
            quantity=quantity,
            reason=reason,
            warehouse_id=warehouse_id or p.warehouse_id,
            timestamp=now,
        )
        append_audit_entry(
            action="STOCK_MOVEMENT",
            details=f"{movement_type} {delta:+d} {p.uom} on {p.sku}: {reason}",
            actor=actor,
            timestamp=now,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("manual movement product=%s type=%s delta=%s", p.id, movement_type, delta)
    return p, m
