# Overview: Service-layer operations for the audit ledger; append-only trail of state changes.

from __future__ import annotations

from typing import Optional
from datetime import datetime

from ..extensions import db
from ..models import AuditLogEntry
from invenpro.time_utils import utcnow
"""
Audit Ledger Invariants (authoritative)

- Append-only. No updates, no deletes (snapshot restore replaces the store wholesale).
- Entries are written inside the same DB transaction as the change they record;
  callers commit.
- `user` is a snapshot string "<display name> (<role>)".
- Read order is newest first (seq DESC).
"""

# Actor used when no operator session is involved (CLI, seed data, imports run from the shell)
SYSTEM_ACTOR = "System Owner (Owner)"


def actor_label(display_name: str, role: str) -> str:
    return f"{display_name} ({role})"


def append_audit_entry(
    *,
    action: str,
    details: str,
    actor: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> AuditLogEntry:
    """
    Append one audit entry.

    - No domain logic here.
    - Flushes so the entry has its id; does not commit.
    """
    if not action or not action.strip():
        raise ValueError("audit action is required")

    entry = AuditLogEntry(
        action=action.strip(),
        details=details or "",
        user=actor or SYSTEM_ACTOR,
        timestamp=timestamp or utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_audit_entries(*, action: str | None = None, limit: int | None = None) -> list[AuditLogEntry]:
    q = db.session.query(AuditLogEntry)
    if action:
        q = q.filter(AuditLogEntry.action == action)
    q = q.order_by(AuditLogEntry.seq.desc())
    if limit is not None:
        q = q.limit(max(int(limit), 0))
    return q.all()
