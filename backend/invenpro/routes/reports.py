# Overview: Flask API routes for analytics and stock advisory insights.

"""
Reporting routes.

- /dashboard: headline stock figures for any operator
- /business-sheet: financial view, behind the analytics PIN
- /insights: rule-based stock advisories (at most four)
"""
from flask import Blueprint

from ..services import advisory_service, reporting_service
from ..decorators import require_auth, require_pin

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    return reporting_service.dashboard_summary()


@reports_bp.get("/business-sheet")
@require_auth
@require_pin("analytics")
def business_sheet_route():
    return reporting_service.business_sheet()


@reports_bp.get("/insights")
@require_auth
def insights_route():
    insights = advisory_service.generate_insights()
    return {"items": [i.to_dict() for i in insights], "count": len(insights)}
