# Overview: Flask API routes for durable snapshot export and restore.

from flask import Blueprint, current_app, request

from ..services import snapshot_service
from ..validation import ValidationError
from ..decorators import require_auth, require_owner

snapshot_bp = Blueprint("snapshot", __name__, url_prefix="/api/snapshot")


@snapshot_bp.get("")
@require_auth
def export_snapshot_route():
    return snapshot_service.export_snapshot()


@snapshot_bp.post("/restore")
@require_auth
@require_owner
def restore_snapshot_route():
    """Replace every store whose namespaced key is present in the body."""
    payload = request.get_json(silent=True)
    try:
        restored = snapshot_service.restore_snapshot(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Snapshot restore failed")
        return {"error": "Snapshot restore failed"}, 500
    return {"restored": restored}, 200
