from __future__ import annotations

from ..extensions import db
from ..id_utils import new_id
from invenpro.time_utils import to_utc_z, utcnow


class AuditLogEntry(db.Model):
    """
    Append-only audit trail.

    `user` is a snapshot string "<display name> (<role>)" taken when the
    entry is written; it is not a FK so renamed or removed operators keep
    their history.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_action", "action"),
        {"sqlite_autoincrement": True},
    )

    seq = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, index=True, default=new_id)

    action = db.Column(db.String(64), nullable=False)  # e.g. DOC_GENERATION, CREATE_ASSET, BULK_IMPORT
    details = db.Column(db.Text, nullable=False, default="")
    user = db.Column(db.String(255), nullable=False)

    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "user": self.user,
            "timestamp": to_utc_z(self.timestamp),
        }
