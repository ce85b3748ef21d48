# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

"""
Catalog routes.

SECURITY: All routes require authentication. Pricing fields can only be
set or changed by an Owner (403 otherwise).
"""
from flask import Blueprint, Response, current_app, request, g

from ..services import products_service, import_service
from ..services.products_service import PricingPermissionError, ProductNotFoundError
from ..services.import_service import CatalogImportError
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import current_actor, require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - search: substring of name or SKU (case-insensitive)
    - category: exact category
    - low_stock: "true" to return only quantity <= min_stock
    """
    products = products_service.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        low_stock=_truthy(request.args.get("low_stock")),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        return products_service.get_product(product_id).to_dict()
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    payload = dict(payload)
    product_id = payload.pop("id", None)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        if "warehouse_id" not in patch:
            patch["warehouse_id"] = current_app.config.get("DEFAULT_WAREHOUSE_ID", "")
        created = products_service.create_product(
            patch=patch,
            actor=current_actor(),
            is_owner=g.current_operator.is_owner,
            product_id=str(product_id) if product_id else None,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except PricingPermissionError as e:
        return {"error": str(e)}, 403

    return created.to_dict(), 201


@products_bp.put("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    """Merge the given fields into the product; last_updated is refreshed."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(
            product_id=product_id,
            patch=patch,
            actor=current_actor(),
            is_owner=g.current_operator.is_owner,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except PricingPermissionError as e:
        return {"error": str(e)}, 403

    return updated.to_dict(), 200


@products_bp.delete("/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    try:
        products_service.delete_product(product_id=product_id, actor=current_actor())
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200


@products_bp.post("/<product_id>/restock")
@require_auth
def quick_restock_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        product = products_service.quick_restock(
            product_id=product_id,
            amount=payload.get("amount"),
            actor=current_actor(),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404

    return product.to_dict(), 200


@products_bp.post("/import")
@require_auth
def import_products_route():
    """
    Bulk import.

    Accepts a multipart upload ("file": .csv or .xlsx) or a JSON body
    {"csv": "<file contents>"}.
    """
    warehouse_id = current_app.config.get("DEFAULT_WAREHOUSE_ID", "WH-001")

    try:
        if "file" in request.files:
            file = request.files["file"]
            result = import_service.read_upload(
                file.filename or "",
                file.stream,
                actor=current_actor(),
                warehouse_id=warehouse_id,
            )
        else:
            payload = request.get_json(silent=True) or {}
            text = payload.get("csv") if isinstance(payload, dict) else None
            if not isinstance(text, str):
                return {"error": "file or csv is required"}, 400
            result = import_service.import_products_csv(text, actor=current_actor(), warehouse_id=warehouse_id)
    except CatalogImportError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Catalog import failed")
        return {"error": "Failed to import file"}, 500

    if result.imported == 0:
        return {"error": "Could not parse any valid data from the file.", **result.to_dict()}, 400
    return result.to_dict(), 201


@products_bp.get("/import/template")
def import_template_route():
    return Response(
        import_service.template_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={import_service.TEMPLATE_FILENAME}"},
    )
