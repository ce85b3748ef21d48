# Overview: Flask API routes for the audit ledger (read and CSV export).

from flask import Blueprint, Response, request

from ..services import audit_service, export_service
from ..decorators import require_auth

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("")
@require_auth
def list_audit_route():
    entries = audit_service.list_audit_entries(
        action=request.args.get("action"),
        limit=request.args.get("limit", type=int),
    )
    return {"items": [e.to_dict() for e in entries], "count": len(entries)}


@audit_bp.get("/export")
@require_auth
def export_audit_route():
    entries = audit_service.list_audit_entries(action=request.args.get("action"))
    return Response(
        export_service.audit_log_csv(entries),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=audit_log.csv"},
    )
