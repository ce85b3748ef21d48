from __future__ import annotations

from ..extensions import db
from ..id_utils import new_id
from invenpro.time_utils import to_utc_z, utcnow


PARTNER_TYPES = ("SUPPLIER", "CUSTOMER")


class Partner(db.Model):
    """
    Supplier / customer directory entry.

    Add and delete only. Documents copy partner fields at commit time, so a
    partner row can be removed without touching document history.
    """
    __tablename__ = "partners"
    __table_args__ = (
        db.Index("ix_partners_type", "type"),
        {"sqlite_autoincrement": True},
    )

    seq = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, index=True, default=new_id)

    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    contact = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    gstin = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Partner id={self.id!r} name={self.name!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "contact": self.contact,
            "email": self.email,
            "gstin": self.gstin,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }
