# Overview: Flask API route for the activity log; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..responses import ok, paginate, query_date, query_int
from ..services import permission_service


audit_bp = Blueprint("audit", __name__, url_prefix="/api/activity-logs")


@audit_bp.get("")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_activity_logs_route():
    """
    Query params: user_id, event_type, start_date, end_date (YYYY-MM-DD,
    inclusive), page, per_page
    """
    query = permission_service.list_security_events_query(
        user_id=query_int("user_id"),
        event_type=request.args.get("event_type") or None,
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda e: e.to_dict()))
