# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Operator login / logout.

The session token returned by login goes in the Authorization header
("Bearer <token>") of every protected route.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400

    try:
        result = auth_service.login(username, password)
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Login failed"}), 500

    if result is None:
        return jsonify({"error": "Invalid credentials"}), 401

    operator, token = result
    return jsonify({"operator": operator.to_dict(), "token": token}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.logout(g.auth_token)
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"operator": g.current_operator.to_dict()}), 200
