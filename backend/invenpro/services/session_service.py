# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: An unrevoked, unexpired session token is the persisted
"authenticated" flag. Tokens are random, stored hashed and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- Revocable on logout
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import Operator, SessionToken
from invenpro.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)


@dataclass
class SessionContext:
    operator: Operator
    session: SessionToken


def generate_token() -> str:
    """
    64-character hex string (32 bytes of entropy).

    DO NOT use random.random() or uuid4() for auth tokens!
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(operator_id: int) -> tuple[SessionToken, str]:
    """
    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    Commits the caller's pending work along with the session row.
    """
    operator = db.session.query(Operator).filter_by(id=operator_id).first()
    if not operator:
        raise ValueError("Operator not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        operator_id=operator_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Returns None if the token is unknown, expired or revoked, or the
    operator has been deactivated. Updates last_used_at otherwise.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    operator = session.operator
    if not operator or not operator.is_active:
        session.is_revoked = True
        session.revoked_at = now
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(operator=operator, session=session)


def revoke_session(token: str) -> bool:
    """Returns True if a live session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()

    db.session.commit()
    return True
