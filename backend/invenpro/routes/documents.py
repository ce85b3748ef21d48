# Overview: Flask API routes for the billing workspace and document history.

"""
Document routes.

Committing a document (and previewing its totals) requires the billing PIN
(X-Gate-Pin) in addition to the session token. History is read-only.
"""
from flask import Blueprint, Response, current_app, request

from ..extensions import db
from ..services import billing_service, document_service, export_service
from ..services.document_service import DocumentNotFoundError, DocumentSequenceError
from ..validation import ValidationError
from ..decorators import current_actor, require_auth, require_pin

documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


@documents_bp.get("")
@require_auth
def list_documents_route():
    """
    Query params:
    - doc_type: exact document type
    - search: document number or partner name
    - limit / offset
    """
    result = document_service.list_documents(
        doc_type=request.args.get("doc_type"),
        search=request.args.get("search"),
        limit=request.args.get("limit", type=int),
        offset=request.args.get("offset", default=0, type=int),
    )
    return {
        "items": [d.to_dict(include_items=False) for d in result["items"]],
        "count": result["count"],
        "total": result["total"],
    }


@documents_bp.get("/<document_id>")
@require_auth
def get_document_route(document_id: str):
    try:
        return document_service.get_document(document_id).to_dict()
    except DocumentNotFoundError as e:
        return {"error": str(e)}, 404


@documents_bp.post("/preview")
@require_auth
@require_pin("billing")
def preview_document_route():
    """Validate a draft and return its totals without committing anything."""
    payload = request.get_json(silent=True) or {}
    try:
        doc = billing_service.build_document(payload)
        preview = doc.to_dict()
        # Draft numbers are not consumed
        preview["doc_no"] = None
    except ValidationError as e:
        return {"error": str(e)}, 400
    finally:
        db.session.rollback()
    return preview, 200


@documents_bp.post("")
@require_auth
@require_pin("billing")
def commit_document_route():
    """
    Body:
    {
      "doc_type": "SALES_BILL",
      "partner_name": "...", "partner_contact", "gstin", "billing_address",
      "payment_status": "PAID" | "CREDIT" | "PENDING",
      "discount_bps": 0, "tax_rate_bps": 1800,
      "vehicle_no", "notes",
      "items": [{"product_id": "...", "quantity": 2, "price_cents": 49900?}, ...]
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        result = billing_service.commit_document(payload, actor=current_actor())
    except ValidationError as e:
        return {"error": str(e)}, 400
    except DocumentSequenceError:
        current_app.logger.exception("Document numbering failed")
        return {"error": "Could not allocate a document number"}, 500

    return result.to_dict(), 201


@documents_bp.get("/export")
@require_auth
def export_documents_route():
    result = document_service.list_documents(
        doc_type=request.args.get("doc_type"),
        search=request.args.get("search"),
    )
    return Response(
        export_service.billing_history_csv(result["items"]),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=billing_history.csv"},
    )
