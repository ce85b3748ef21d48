# Overview: Service-layer operations for operators and login; encapsulates business logic and database work.

"""
Operator Authentication Service

WHY: Every audit entry names the operator who acted. Passwords are hashed
with bcrypt; the session token issued at login is the persisted
"authenticated" flag (see session_service.py).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters with upper, lower, digit and special char
- Usernames are unique and compared case-insensitively
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import Operator
from ..models.auth import OPERATOR_ROLES
from ..validation import ConflictError, ValidationError
from .audit_service import append_audit_entry
from .session_service import create_session, revoke_session
from invenpro.time_utils import utcnow

logger = logging.getLogger(__name__)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password or "") < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never verify."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_operator(
    username: str,
    display_name: str,
    password: str,
    role: str = "Manager",
) -> Operator:
    username = (username or "").strip().lower()
    display_name = (display_name or "").strip()
    if not username:
        raise ValidationError("username is required")
    if not display_name:
        raise ValidationError("display_name is required")
    if role not in OPERATOR_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(OPERATOR_ROLES)}")

    if db.session.query(Operator).filter_by(username=username).first():
        raise ConflictError("Username already exists")

    operator = Operator(
        username=username,
        display_name=display_name,
        role=role,
        password_hash=hash_password(password),
    )
    db.session.add(operator)
    db.session.commit()
    logger.info("operator created username=%s role=%s", username, role)
    return operator


def authenticate(username: str, password: str) -> Operator | None:
    """
    Returns the active Operator if the credentials match, None otherwise.
    """
    operator = (
        db.session.query(Operator)
        .filter(Operator.username == (username or "").strip().lower(), Operator.is_active.is_(True))
        .first()
    )
    if operator is None:
        return None
    if not verify_password(password or "", operator.password_hash):
        return None
    return operator


def login(username: str, password: str) -> tuple[Operator, str] | None:
    """
    Authenticate and open a session. Records USER_LOGIN.

    Returns (operator, plaintext_token) or None on bad credentials.
    """
    operator = authenticate(username, password)
    if operator is None:
        logger.warning("failed login for username=%s", username)
        return None

    operator.last_login_at = utcnow()
    append_audit_entry(
        action="USER_LOGIN",
        details="Operator session established.",
        actor=operator.actor_label,
    )
    _, token = create_session(operator.id)
    return operator, token


def logout(token: str) -> bool:
    return revoke_session(token)
