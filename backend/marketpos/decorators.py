# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, g

from .responses import fail
from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets g.current_user to the authenticated User.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return fail("Authentication required", 401)

        user = session_service.validate_session(token)
        if not user:
            return fail("Invalid or expired token", 401)

        g.current_user = user
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the current user's role to hold a permission code."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return fail("Authentication required", 401)

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return fail(
                    "Permission denied",
                    403,
                    required_permission=permission_code,
                    details={"reason": str(e)},
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            user = g.current_user
            user_permissions = permission_service.get_user_permissions(user)

            if not any(code in user_permissions for code in permission_codes):
                permission_service.log_security_event(
                    user_id=user.id,
                    event_type="PERMISSION_DENIED",
                    success=False,
                    resource=request.path,
                    action=f"ANY_OF:{','.join(permission_codes)}",
                    reason=f"Missing any of: {', '.join(permission_codes)}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return fail(
                    "Permission denied",
                    403,
                    required_permissions=list(permission_codes),
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def audit_activity(event_type: str, action: str | None = None) -> None:
    """Record a successful data change by the current user in security_events."""
    user = getattr(g, "current_user", None)
    permission_service.log_security_event(
        user_id=user.id if user else None,
        event_type=event_type,
        success=True,
        resource=request.path,
        action=action and action[:128],
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
