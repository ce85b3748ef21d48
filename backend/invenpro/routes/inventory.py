# Overview: Flask API routes for the movement ledger; parses input and returns JSON responses.

"""
Stock movement routes.

Manual movements require the stock-adjustment PIN (X-Gate-Pin) in
addition to the session token.
"""
from flask import Blueprint, Response, request

from ..services import inventory_service, export_service
from ..services.products_service import ProductNotFoundError
from ..validation import ValidationError
from ..decorators import current_actor, require_auth, require_pin

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/movements")


@inventory_bp.get("")
@require_auth
def list_movements_route():
    """
    Newest first.

    Query params:
    - product_id: only movements for this product
    - limit: max rows
    """
    movements = inventory_service.list_movements(
        product_id=request.args.get("product_id"),
        limit=request.args.get("limit", type=int),
    )
    return {"items": [m.to_dict() for m in movements], "count": len(movements)}


@inventory_bp.post("")
@require_auth
@require_pin("adjustment")
def record_movement_route():
    """
    Body: {product_id, type, quantity, reason, warehouse_id?}

    type is PURCHASE, SALE, ADJUSTMENT or TRANSFER. SALE reduces stock,
    ADJUSTMENT with a negative quantity reduces stock, everything else adds.
    """
    payload = request.get_json(silent=True) or {}
    product_id = payload.get("product_id")
    if not product_id:
        return {"error": "product_id is required"}, 400

    try:
        product, movement = inventory_service.record_manual_movement(
            product_id=str(product_id),
            type=payload.get("type"),
            quantity=payload.get("quantity"),
            reason=payload.get("reason"),
            warehouse_id=payload.get("warehouse_id"),
            actor=current_actor(),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404

    return {"product": product.to_dict(), "movement": movement.to_dict()}, 201


@inventory_bp.get("/export")
@require_auth
def export_movements_route():
    movements = inventory_service.list_movements(product_id=request.args.get("product_id"))
    return Response(
        export_service.movements_csv(movements),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=stock_movements.csv"},
    )
