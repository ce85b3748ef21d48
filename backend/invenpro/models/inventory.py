from __future__ import annotations

from ..extensions import db
from ..id_utils import new_id
from invenpro.time_utils import to_utc_z, utcnow


UNITS_OF_MEASURE = ("pcs", "kg", "meter", "box", "liters", "units", "NOS")

MOVEMENT_TYPES = ("PURCHASE", "SALE", "ADJUSTMENT", "TRANSFER", "PO", "SO", "GRN", "CHALLAN", "CREDIT_NOTE", "DEBIT_NOTE")


class Product(db.Model):
    """
    Catalog entry (one SKU).

    ORDERING: `seq` is the insertion counter. The catalog is read newest-first
    (seq DESC), so a freshly registered product appears at the top.

    QUANTITY: Stored directly on the row and moved by the reconciliation
    engine, quick restock and manual movements. No non-negative guard is
    applied on the document path; quantity may go below zero.

    PRICING: Authoritative storage in cents. purchase_price_cents is the last
    cost basis (overwritten only by PURCHASE_BILL documents).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    seq = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, index=True, default=new_id)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, default="General")
    brand = db.Column(db.String(120), nullable=True)
    hsn_code = db.Column(db.String(32), nullable=True)
    uom = db.Column(db.String(16), nullable=False, default="pcs")
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    max_stock = db.Column(db.Integer, nullable=False, default=0)
    warehouse_id = db.Column(db.String(64), nullable=False, default="")

    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_updated = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} sku={self.sku!r} qty={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "brand": self.brand,
            "hsn_code": self.hsn_code,
            "uom": self.uom,
            "description": self.description,
            "image_url": self.image_url,
            "quantity": self.quantity,
            "min_stock": self.min_stock,
            "max_stock": self.max_stock,
            "warehouse_id": self.warehouse_id,
            "purchase_price_cents": self.purchase_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "last_updated": to_utc_z(self.last_updated),
        }


class StockMovement(db.Model):
    """
    Append-only movement ledger row.

    quantity is UNSIGNED: the direction is implied by `type` (SALE, a
    stock-reducing document type, or a negative manual ADJUSTMENT).

    product_id is a weak reference (no FK): deleting a product leaves its
    movements in place, and product_name keeps the name as it was at write
    time.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_movements_product", "product_id"),
        db.Index("ix_movements_doc_ref", "doc_ref"),
        {"sqlite_autoincrement": True},
    )

    seq = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, index=True, default=new_id)

    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    type = db.Column(db.String(32), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    doc_ref = db.Column(db.String(64), nullable=True)
    warehouse_id = db.Column(db.String(64), nullable=False, default="")

    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<StockMovement id={self.id!r} type={self.type} product_id={self.product_id!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "doc_ref": self.doc_ref,
            "warehouse_id": self.warehouse_id,
            "timestamp": to_utc_z(self.timestamp),
        }
