from __future__ import annotations

from ..extensions import db
from ..id_utils import new_id
from invenpro.time_utils import to_utc_z, utcnow


DOCUMENT_TYPES = (
    "PURCHASE_BILL",
    "SALES_BILL",
    "GRN",
    "PO",
    "SO",
    "DELIVERY_CHALLAN",
    "ADJUSTMENT_BILL",
    "CREDIT_DEBIT_NOTE",
)

# Directional note types recognised by the reconciliation table
NOTE_DOCUMENT_TYPES = ("CREDIT_NOTE", "DEBIT_NOTE")

PAYMENT_STATUSES = ("PAID", "CREDIT", "PENDING")


class DocumentRecord(db.Model):
    """
    Committed commercial document (bill, order, receipt, challan, note).

    IMMUTABLE: Once written, a document is never updated or deleted. It is a
    ledger entry; corrections are new documents.

    PARTNER SNAPSHOT: partner_* / gstin / billing_address are copied at commit
    time. There is no FK to partners, so later edits or deletes in the partner
    directory never rewrite history.

    id and timestamp are assigned by the billing workspace before the record
    reaches the document ledger.
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_type", "doc_type"),
        db.Index("ix_documents_doc_no", "doc_no"),
        {"sqlite_autoincrement": True},
    )

    seq = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, index=True, default=new_id)

    doc_type = db.Column(db.String(32), nullable=False)
    # Human-readable number, e.g. "SB/2025/0007"
    doc_no = db.Column(db.String(64), nullable=False)

    partner_name = db.Column(db.String(255), nullable=False, default="")
    partner_contact = db.Column(db.String(120), nullable=True)
    gstin = db.Column(db.String(32), nullable=True)
    billing_address = db.Column(db.Text, nullable=True)

    payment_status = db.Column(db.String(16), nullable=False, default="PAID")

    # Rates in basis points (1800 = 18%)
    discount_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    vehicle_no = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    lines = db.relationship(
        "DocumentLine",
        backref="document",
        lazy=True,
        order_by="DocumentLine.line_no",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord id={self.id!r} doc_no={self.doc_no!r} type={self.doc_type}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "doc_type": self.doc_type,
            "doc_no": self.doc_no,
            "partner_name": self.partner_name,
            "partner_contact": self.partner_contact,
            "gstin": self.gstin,
            "billing_address": self.billing_address,
            "payment_status": self.payment_status,
            "discount_bps": self.discount_bps,
            "tax_rate_bps": self.tax_rate_bps,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "vehicle_no": self.vehicle_no,
            "notes": self.notes,
            "timestamp": to_utc_z(self.timestamp),
            "item_count": len(self.lines),
        }
        if include_items:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class DocumentLine(db.Model):
    """
    Line item on a committed document.

    product_id is a weak reference; name/hsn/uom are denormalized from the
    product at commit time. quantity is always positive, price_cents is the
    unit price charged (or paid) on this document.
    """
    __tablename__ = "document_lines"
    __table_args__ = (
        db.UniqueConstraint("document_id", "line_no", name="uq_document_lines_doc_line"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(db.String(36), db.ForeignKey("documents.id"), nullable=False, index=True)
    line_no = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(36), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    hsn = db.Column(db.String(32), nullable=True)
    uom = db.Column(db.String(16), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.price_cents

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "hsn": self.hsn,
            "uom": self.uom,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
        }


class DocumentSequence(db.Model):
    """
    Per-type, per-year document counters.

    WHY: Document numbers must not collide across rapid successive commits.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("doc_type", "year", name="uq_doc_sequences_type_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    doc_type = db.Column(db.String(32), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "doc_type": self.doc_type,
            "year": self.year,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
