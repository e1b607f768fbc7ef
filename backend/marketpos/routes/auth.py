# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Login issues an opaque bearer token (stored hashed server-side)
- Logout revokes the presented token
- Self-registration does not exist; admins create accounts via /api/users
"""

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..responses import fail, json_body, ok
from ..services import auth_service, permission_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user) -> dict:
    data = user.to_dict()
    data["permissions"] = sorted(permission_service.get_user_permissions(user))
    return data


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = json_body()
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return fail("username and password required", 400)

    user_agent = request.headers.get("User-Agent")
    ip_address = request.remote_addr

    user = auth_service.authenticate(username, password)
    if not user:
        permission_service.log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            resource="/api/auth/login",
            action=str(username)[:128],
            reason="Invalid credentials",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return fail("Invalid username or password", 401)

    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    permission_service.log_security_event(
        user_id=user.id,
        event_type="LOGIN",
        success=True,
        resource="/api/auth/login",
        ip_address=ip_address,
        user_agent=user_agent,
    )

    return ok(
        {
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
            "user": _user_payload(user),
        },
        message="Login successful",
    )


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token, reason="User logout")
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="LOGOUT",
        success=True,
        resource="/api/auth/logout",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return ok(message="Logged out")


@auth_bp.get("/me")
@require_auth
def me_route():
    return ok(_user_payload(g.current_user))


@auth_bp.put("/password")
@require_auth
def change_password_route():
    """Change own password. All sessions (including this one) are revoked."""
    data = json_body()
    auth_service.change_password(
        g.current_user,
        data.get("current_password"),
        data.get("new_password"),
    )
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="PASSWORD_CHANGED",
        success=True,
        resource="/api/auth/password",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return ok(message="Password changed, please log in again")
