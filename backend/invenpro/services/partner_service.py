# Overview: Service-layer operations for the partner directory; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Partner
from ..models.partners import PARTNER_TYPES
from ..validation import NotFoundError, ValidationError
from .audit_service import append_audit_entry

logger = logging.getLogger(__name__)

# Directory contents on a fresh install (`flask system init`)
STARTER_PARTNERS = (
    {
        "name": "Apex Components Ltd",
        "type": "SUPPLIER",
        "contact": "+91 98200 11223",
        "email": "orders@apexcomponents.in",
        "gstin": "27AABCA1234F1Z5",
        "address": "Plot 14, MIDC Industrial Area, Pune",
    },
    {
        "name": "Metro Retail Traders",
        "type": "CUSTOMER",
        "contact": "+91 99300 44556",
        "email": "accounts@metroretail.in",
        "gstin": "27AAFCM5678K1Z2",
        "address": "22 Station Road, Mumbai",
    },
)


class PartnerNotFoundError(NotFoundError):
    pass


def list_partners(*, type: str | None = None, search: str | None = None) -> list[Partner]:
    """Newest first. search matches name or GSTIN, case-insensitive."""
    q = db.session.query(Partner)
    if type and type.upper() != "ALL":
        q = q.filter(Partner.type == type.upper())
    if search:
        needle = f"%{search.strip().lower()}%"
        q = q.filter(
            db.or_(
                db.func.lower(Partner.name).like(needle),
                db.func.lower(db.func.coalesce(Partner.gstin, "")).like(needle),
            )
        )
    return q.order_by(Partner.seq.desc()).all()


def _build_partner(data: dict) -> Partner:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")

    partner_type = (data.get("type") or "CUSTOMER").strip().upper()
    if partner_type not in PARTNER_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(PARTNER_TYPES)}")

    gstin = (data.get("gstin") or "").strip().upper() or None
    return Partner(
        name=name,
        type=partner_type,
        contact=(data.get("contact") or "").strip(),
        email=(data.get("email") or "").strip(),
        gstin=gstin,
        address=(data.get("address") or "").strip() or None,
    )


def add_partner(data: dict, *, actor: str | None = None) -> Partner:
    partner = _build_partner(data or {})
    db.session.add(partner)
    db.session.flush()

    append_audit_entry(
        action="PARTNER_ADDED",
        details=f"{partner.type.title()} {partner.name} added to directory.",
        actor=actor,
    )
    db.session.commit()
    return partner


def delete_partner(partner_id: str, *, actor: str | None = None) -> None:
    partner = db.session.query(Partner).filter_by(id=partner_id).first()
    if partner is None:
        raise PartnerNotFoundError(f"Partner {partner_id} not found")

    name = partner.name
    db.session.delete(partner)
    append_audit_entry(
        action="PARTNER_REMOVED",
        details=f"Partner {name} removed from directory.",
        actor=actor,
    )
    db.session.commit()


def seed_starter_partners() -> int:
    """
    Insert the starter partners when the directory is empty.

    Safe to call repeatedly. Returns the number of partners created.
    """
    if db.session.query(Partner).first() is not None:
        return 0

    # Reverse so the newest-first listing shows them in declaration order
    for data in reversed(STARTER_PARTNERS):
        db.session.add(_build_partner(data))
        db.session.flush()
    db.session.commit()
    logger.info("seeded %d starter partners", len(STARTER_PARTNERS))
    return len(STARTER_PARTNERS)
