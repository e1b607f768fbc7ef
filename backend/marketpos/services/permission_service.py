# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission checks against the closed role set.

WHY: Authorization is a capability check (does this role hold code X), not
string matching on role names scattered through the routes. Denials are
written to the security_events audit trail.
"""

from datetime import date

from ..extensions import db
from ..models import SecurityEvent, User
from ..permissions import permissions_for_role
from .inventory_service import filter_created_between
from marketpos.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - LOGIN
    - LOGOUT
    - PASSWORD_CHANGED
    - USER_CREATED, USER_UPDATED, USER_DEACTIVATED
    - PRODUCT_*, CATEGORY_*, SUPPLIER_*, DISCOUNT_* (CREATED, UPDATED, DELETED)
    - PURCHASE_CREATED, PURCHASE_STATUS_CHANGED, PURCHASE_DELETED
    - INVENTORY_ADJUSTED
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason and reason[:255],
        ip_address=ip_address,
        user_agent=user_agent and user_agent[:255],
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def get_user_permissions(user: User) -> set[str]:
    """Capability set for an active user (empty when deactivated)."""
    if user is None or not user.is_active:
        return set()
    return set(permissions_for_role(user.role))


def user_has_permission(user: User, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user)


def require_permission(
    user: User,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Only denials are logged to security_events.
    """
    if not user_has_permission(user, permission_code):
        log_security_event(
            user_id=user.id if user else None,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=resource,
            action=permission_code,
            reason=f"Missing permission: {permission_code}",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def list_security_events_query(
    *,
    user_id: int | None = None,
    event_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    """Audit trail entries, newest first."""
    query = db.session.query(SecurityEvent)
    if user_id is not None:
        query = query.filter(SecurityEvent.user_id == user_id)
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type.strip().upper())
    query = filter_created_between(query, SecurityEvent.occurred_at, start_date, end_date)
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc())
