# Overview: Durable snapshot of the five stores as namespaced JSON blobs; export and restore.

"""
Snapshot format

    {
      "<ns>_products":  [Product.to_dict(), ...]          newest first
      "<ns>_movements": [StockMovement.to_dict(), ...]    newest first
      "<ns>_docs":      [DocumentRecord.to_dict(), ...]   newest first, with items
      "<ns>_entities":  [Partner.to_dict(), ...]          newest first
      "<ns>_audit":     [AuditLogEntry.to_dict(), ...]    newest first
      "<ns>_auth":      true | false                      any live operator session
    }

<ns> is STORAGE_NAMESPACE ("invenpro" by default).

Restore replaces every store whose key is present, wholesale, and leaves the
other stores alone. Order is preserved: the first element of each list reads
back first. Restoring "<ns>_auth": false revokes all open sessions; true is
accepted and changes nothing. Restoring "<ns>_docs" resets the numbering
counters past the highest restored number. Everything happens in one
transaction.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from flask import current_app, has_app_context

from ..extensions import db
from ..models import (
    AuditLogEntry,
    DocumentLine,
    DocumentRecord,
    Partner,
    Product,
    SessionToken,
    StockMovement,
)
from ..validation import ValidationError
from .document_service import rebuild_document_sequences
from invenpro.time_utils import parse_iso_datetime, utcnow

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "invenpro"

STORE_SUFFIXES = ("products", "movements", "docs", "entities", "audit")


def _namespace(namespace: str | None) -> str:
    if namespace:
        return namespace
    if has_app_context():
        return current_app.config.get("STORAGE_NAMESPACE") or DEFAULT_NAMESPACE
    return DEFAULT_NAMESPACE


def snapshot_keys(namespace: str | None = None) -> dict[str, str]:
    ns = _namespace(namespace)
    keys = {suffix: f"{ns}_{suffix}" for suffix in STORE_SUFFIXES}
    keys["auth"] = f"{ns}_auth"
    return keys


def _has_live_session() -> bool:
    now = utcnow()
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.is_revoked.is_(False), SessionToken.expires_at > now)
        .first()
        is not None
    )


def export_snapshot(namespace: str | None = None) -> dict[str, Any]:
    keys = snapshot_keys(namespace)
    return {
        keys["products"]: [p.to_dict() for p in db.session.query(Product).order_by(Product.seq.desc())],
        keys["movements"]: [m.to_dict() for m in db.session.query(StockMovement).order_by(StockMovement.seq.desc())],
        keys["docs"]: [d.to_dict() for d in db.session.query(DocumentRecord).order_by(DocumentRecord.seq.desc())],
        keys["entities"]: [e.to_dict() for e in db.session.query(Partner).order_by(Partner.seq.desc())],
        keys["audit"]: [a.to_dict() for a in db.session.query(AuditLogEntry).order_by(AuditLogEntry.seq.desc())],
        keys["auth"]: _has_live_session(),
    }


# ---------------------------------------------------------------------------
# Restore
# ---------------------------------------------------------------------------

def _req(row: dict, key: str, store: str) -> Any:
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{store}: '{key}' is required")
    return value


def _int(row: dict, key: str, default: int = 0) -> int:
    value = row.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{key}' must be a number")
    return int(value)


def _when(row: dict, key: str):
    try:
        return parse_iso_datetime(row.get(key)) or utcnow()
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _product_from(row: dict) -> Product:
    stamp = _when(row, "last_updated")
    return Product(
        id=str(_req(row, "id", "products")),
        sku=str(_req(row, "sku", "products")),
        name=str(_req(row, "name", "products")),
        category=row.get("category") or "General",
        brand=row.get("brand"),
        hsn_code=row.get("hsn_code"),
        uom=row.get("uom") or "pcs",
        description=row.get("description"),
        image_url=row.get("image_url"),
        quantity=_int(row, "quantity"),
        min_stock=_int(row, "min_stock"),
        max_stock=_int(row, "max_stock"),
        warehouse_id=row.get("warehouse_id") or "",
        purchase_price_cents=_int(row, "purchase_price_cents"),
        selling_price_cents=_int(row, "selling_price_cents"),
        created_at=stamp,
        last_updated=stamp,
    )


def _movement_from(row: dict) -> StockMovement:
    return StockMovement(
        id=str(_req(row, "id", "movements")),
        product_id=str(_req(row, "product_id", "movements")),
        product_name=str(row.get("product_name") or ""),
        type=str(_req(row, "type", "movements")),
        quantity=abs(_int(row, "quantity")),
        reason=str(row.get("reason") or ""),
        doc_ref=row.get("doc_ref"),
        warehouse_id=row.get("warehouse_id") or "",
        timestamp=_when(row, "timestamp"),
    )


def _document_from(row: dict) -> DocumentRecord:
    doc = DocumentRecord(
        id=str(_req(row, "id", "docs")),
        doc_type=str(_req(row, "doc_type", "docs")),
        doc_no=str(_req(row, "doc_no", "docs")),
        partner_name=row.get("partner_name") or "",
        partner_contact=row.get("partner_contact"),
        gstin=row.get("gstin"),
        billing_address=row.get("billing_address"),
        payment_status=row.get("payment_status") or "PAID",
        discount_bps=_int(row, "discount_bps"),
        tax_rate_bps=_int(row, "tax_rate_bps"),
        subtotal_cents=_int(row, "subtotal_cents"),
        discount_cents=_int(row, "discount_cents"),
        tax_cents=_int(row, "tax_cents"),
        total_cents=_int(row, "total_cents"),
        vehicle_no=row.get("vehicle_no"),
        notes=row.get("notes"),
        timestamp=_when(row, "timestamp"),
    )
    items = row.get("items") or []
    if not isinstance(items, list):
        raise ValidationError("docs: 'items' must be a list")
    doc.lines = [
        DocumentLine(
            line_no=n,
            product_id=str(_req(item, "product_id", "docs.items")),
            name=str(item.get("name") or ""),
            hsn=item.get("hsn"),
            uom=item.get("uom"),
            quantity=_int(item, "quantity"),
            price_cents=_int(item, "price_cents"),
        )
        for n, item in enumerate(items, start=1)
    ]
    return doc


def _partner_from(row: dict) -> Partner:
    return Partner(
        id=str(_req(row, "id", "entities")),
        name=str(_req(row, "name", "entities")),
        type=str(_req(row, "type", "entities")),
        contact=row.get("contact") or "",
        email=row.get("email") or "",
        gstin=row.get("gstin"),
        address=row.get("address"),
        created_at=_when(row, "created_at"),
    )


def _audit_from(row: dict) -> AuditLogEntry:
    return AuditLogEntry(
        id=str(_req(row, "id", "audit")),
        action=str(_req(row, "action", "audit")),
        details=str(row.get("details") or ""),
        user=str(row.get("user") or ""),
        timestamp=_when(row, "timestamp"),
    )


def _clear_documents() -> None:
    db.session.query(DocumentLine).delete(synchronize_session=False)
    db.session.query(DocumentRecord).delete(synchronize_session=False)


_RESTORERS: dict[str, tuple[Callable[[], None], Callable[[dict], Any]]] = {
    "products": (lambda: db.session.query(Product).delete(synchronize_session=False), _product_from),
    "movements": (lambda: db.session.query(StockMovement).delete(synchronize_session=False), _movement_from),
    "docs": (_clear_documents, _document_from),
    "entities": (lambda: db.session.query(Partner).delete(synchronize_session=False), _partner_from),
    "audit": (lambda: db.session.query(AuditLogEntry).delete(synchronize_session=False), _audit_from),
}


def restore_snapshot(blobs: dict, namespace: str | None = None) -> dict[str, int]:
    """
    Replace the stores present in `blobs`. Returns {suffix: rows restored}.
    """
    if not isinstance(blobs, dict):
        raise ValidationError("snapshot must be a JSON object")

    keys = snapshot_keys(namespace)
    restored: dict[str, int] = {}

    try:
        for suffix in STORE_SUFFIXES:
            key = keys[suffix]
            if key not in blobs:
                continue
            rows = blobs[key]
            if not isinstance(rows, list):
                raise ValidationError(f"{key} must be a list")
            if any(not isinstance(r, dict) for r in rows):
                raise ValidationError(f"{key} entries must be objects")

            clear, build = _RESTORERS[suffix]
            clear()
            # Blobs are newest first; insert oldest first
            for row in reversed(rows):
                db.session.add(build(row))
                db.session.flush()
            restored[suffix] = len(rows)

        if "docs" in restored:
            rebuild_document_sequences()

        if keys["auth"] in blobs and not blobs[keys["auth"]]:
            now = utcnow()
            db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False)).update(
                {"is_revoked": True, "revoked_at": now}, synchronize_session=False
            )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("snapshot restored: %s", restored or "nothing")
    return restored
