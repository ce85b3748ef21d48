# Overview: Flask API routes for the partner directory; parses input and returns JSON responses.

from flask import Blueprint, request

from ..services import partner_service
from ..services.partner_service import PartnerNotFoundError
from ..validation import ValidationError
from ..decorators import current_actor, require_auth

partners_bp = Blueprint("partners", __name__, url_prefix="/api/partners")


@partners_bp.get("")
@require_auth
def list_partners_route():
    """
    Query params:
    - type: SUPPLIER | CUSTOMER | ALL
    - search: name or GSTIN substring
    """
    partners = partner_service.list_partners(
        type=request.args.get("type"),
        search=request.args.get("search"),
    )
    return {"items": [p.to_dict() for p in partners], "count": len(partners)}


@partners_bp.post("")
@require_auth
def add_partner_route():
    payload = request.get_json(silent=True) or {}
    try:
        partner = partner_service.add_partner(payload, actor=current_actor())
    except ValidationError as e:
        return {"error": str(e)}, 400
    return partner.to_dict(), 201


@partners_bp.delete("/<partner_id>")
@require_auth
def delete_partner_route(partner_id: str):
    try:
        partner_service.delete_partner(partner_id, actor=current_actor())
    except PartnerNotFoundError as e:
        return {"error": str(e)}, 404
    return {"ok": True}, 200
