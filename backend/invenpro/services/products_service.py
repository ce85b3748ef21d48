# Overview: Service-layer operations for the catalog; encapsulates business logic and database work.

"""
Catalog Store

- Products are listed newest first (seq DESC).
- create/update/delete write exactly one audit entry in the same transaction.
- update is a whole-record merge: any mutable field present in the patch
  replaces the stored value; last_updated is refreshed.
- delete is unconditional. Movements and document lines keep their weak
  product_id references and denormalized names.
- Pricing fields are owner-only.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, NotFoundError, ValidationError
from .audit_service import append_audit_entry
from invenpro.time_utils import utcnow

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "sku",
    "name",
    "category",
    "brand",
    "hsn_code",
    "uom",
    "description",
    "image_url",
    "quantity",
    "min_stock",
    "max_stock",
    "warehouse_id",
    "purchase_price_cents",
    "selling_price_cents",
}

PRICING_FIELDS = {"purchase_price_cents", "selling_price_cents"}

class ProductNotFoundError(NotFoundError):
    pass


class PricingPermissionError(PermissionError):
    """Raised when a non-owner tries to set or change prices."""


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: str) -> Product:
    p = db.session.query(Product).filter_by(id=product_id).first()
    if p is None:
        raise ProductNotFoundError(f"Product {product_id} not found")
    return p


def list_products(
    *,
    search: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
) -> list[Product]:
    q = db.session.query(Product)

    if search:
        needle = f"%{search.strip().lower()}%"
        q = q.filter(
            db.or_(
                db.func.lower(Product.name).like(needle),
                db.func.lower(Product.sku).like(needle),
            )
        )
    if category:
        q = q.filter(Product.category == category)
    if low_stock:
        q = q.filter(Product.quantity <= Product.min_stock)

    return q.order_by(Product.seq.desc()).all()


def _ensure_sku_available(sku: str, *, exclude_id: str | None = None) -> None:
    q = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"SKU {sku} already exists.")


def _check_pricing_permission(patch: dict, *, is_owner: bool, current: Product | None = None) -> None:
    if is_owner:
        return
    for field in PRICING_FIELDS & patch.keys():
        if current is None or getattr(current, field) != patch[field]:
            raise PricingPermissionError("Only the Owner can change pricing.")


def create_product(
    *,
    patch: dict,
    actor: str | None = None,
    is_owner: bool = True,
    product_id: str | None = None,
) -> Product:
    """
    Register a new catalog entry from a validated patch.

    product_id lets callers (imports, snapshot tooling, tests) choose the
    identifier; otherwise a UUID is generated.
    """
    sku = (patch.get("sku") or "").strip()
    if not sku:
        raise ValidationError("sku is required")
    if not (patch.get("name") or "").strip():
        raise ValidationError("name is required")

    _check_pricing_permission(patch, is_owner=is_owner)
    _ensure_sku_available(sku)

    if product_id is not None and db.session.query(Product).filter_by(id=product_id).first():
        raise ConflictError(f"Product id {product_id} already exists.")

    now = utcnow()
    p = Product(created_at=now, last_updated=now)
    if product_id is not None:
        p.id = product_id
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()

    append_audit_entry(
        action="CREATE_ASSET",
        details=f"New asset registered: {p.sku}",
        actor=actor,
        timestamp=now,
    )

    db.session.commit()
    logger.info("product created id=%s sku=%s", p.id, p.sku)
    return p


def update_product(
    *,
    product_id: str,
    patch: dict,
    actor: str | None = None,
    is_owner: bool = True,
) -> Product:
    p = get_product(product_id)
    original_sku = p.sku

    _check_pricing_permission(patch, is_owner=is_owner, current=p)

    if "sku" in patch:
        new_sku = (patch.get("sku") or "").strip()
        if not new_sku:
            raise ValidationError("sku cannot be blank")
        if new_sku != p.sku:
            _ensure_sku_available(new_sku, exclude_id=p.id)

    now = utcnow()
    apply_product_patch(p, patch)
    p.last_updated = now

    append_audit_entry(
        action="UPDATE_ASSET",
        details=f"Product {original_sku} updated.",
        actor=actor,
        timestamp=now,
    )

    db.session.commit()
    return p


def delete_product(*, product_id: str, actor: str | None = None) -> bool:
    p = get_product(product_id)
    sku = p.sku

    db.session.delete(p)
    append_audit_entry(
        action="DELETE_ASSET",
        details=f"Product {sku} removed from catalog.",
        actor=actor,
    )

    db.session.commit()
    logger.info("product deleted id=%s sku=%s", product_id, sku)
    return True


def apply_quantity_delta(p: Product, delta: int, *, at=None) -> Product:
    """
    Move a product's on-hand quantity by a signed delta.

    No lower bound is enforced. Does not commit.
    """
    p.quantity = (p.quantity or 0) + int(delta)
    p.last_updated = at or utcnow()
    return p


def quick_restock(*, product_id: str, amount: int, actor: str | None = None) -> Product:
    """Add a fixed amount of stock straight from the catalog view (no movement row)."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("amount must be a positive integer")

    p = get_product(product_id)
    apply_quantity_delta(p, amount)

    append_audit_entry(
        action="QUICK_RESTOCK",
        details=f"Quick restock +{amount} for {p.sku}.",
        actor=actor,
    )

    db.session.commit()
    return p
