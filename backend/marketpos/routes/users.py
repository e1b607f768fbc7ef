# Overview: Flask API routes for user administration; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_bool, query_int
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    query = user_service.list_users_query(
        role=request.args.get("role") or None,
        include_inactive=not query_bool("active_only"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda u: u.to_dict()))


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user_route(user_id: int):
    return ok(user_service.get_user(user_id).to_dict())


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    user = user_service.create_user(json_body())
    audit_activity("USER_CREATED", f"user:{user.id}")
    return ok(user.to_dict(), message="User created successfully", status=201)


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    user = user_service.update_user(user_id, json_body(), acting_user_id=g.current_user.id)
    audit_activity("USER_UPDATED", f"user:{user_id}")
    return ok(user.to_dict(), message="User updated successfully")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    user_service.deactivate_user(user_id, acting_user_id=g.current_user.id)
    audit_activity("USER_DEACTIVATED", f"user:{user_id}")
    return ok(message="User deactivated successfully")
