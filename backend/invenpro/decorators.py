# Overview: Request decorators for API routes (session auth, owner role, feature PIN gates).

import hmac
import logging
from functools import wraps
from flask import current_app, request, jsonify, g

from .services import session_service

logger = logging.getLogger(__name__)

# Header carrying the feature PIN, checked in addition to the session token
PIN_HEADER = "X-Gate-Pin"

# gate name -> config key
PIN_GATES = {
    "billing": "BILLING_PIN",
    "adjustment": "ADJUSTMENT_PIN",
    "analytics": "ANALYTICS_PIN",
}


def _is_authenticated() -> bool:
    return hasattr(g, 'current_operator')


def current_actor() -> str | None:
    """Audit actor string for the current request, or None (system)."""
    if not _is_authenticated():
        return None
    return g.current_operator.actor_label


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_operator: The authenticated Operator
    - g.session_context: The full SessionContext object
    - g.auth_token: The plaintext bearer token (used by logout)

    Returns 401 if the Authorization header is missing, or the token is
    invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_operator = context.operator
        g.session_context = context
        g.auth_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_owner(f):
    """Owner-only endpoint. Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if not g.current_operator.is_owner:
            return jsonify({"error": "Owner role required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_pin(gate: str):
    """
    Require the configured PIN for a feature gate in the X-Gate-Pin header.

    A missing or wrong PIN returns 403 before the view runs.
    """
    config_key = PIN_GATES[gate]

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            expected = str(current_app.config.get(config_key) or "")
            supplied = request.headers.get(PIN_HEADER, "")

            if not expected or not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
                logger.warning(
                    "rejected %s PIN for %s %s (operator=%s)",
                    gate,
                    request.method,
                    request.path,
                    current_actor() or "-",
                )
                return jsonify({"error": "Invalid PIN", "gate": gate}), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
