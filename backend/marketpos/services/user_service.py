# Overview: Service-layer operations for users; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import Role
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .auth_service import hash_password
from .concurrency import unit_of_work
from .session_service import revoke_all_user_sessions


# password is handled separately (hashed), never written to a column directly
USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "full_name", "email", "phone", "role", "is_active"},
    required_on_create={"username", "full_name", "role"},
)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": user_id})
    return user


def list_users_query(*, role: str | None = None, include_inactive: bool = True):
    query = db.session.query(User)
    if role is not None:
        _check_role(role)
        query = query.filter(User.role == role)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.desc(), User.id.desc())


def _check_role(role: str) -> None:
    if role not in Role.values():
        raise ValidationError(f"role must be one of: {', '.join(Role.values())}")


def _ensure_unique_username(username: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.username == username)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Username already exists", details={"username": username})


def _split_password(payload: dict) -> tuple[dict, str | None]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    return payload, payload.pop("password", None)


def create_user(payload: dict) -> User:
    payload, password = _split_password(payload)
    if password is None:
        raise ValidationError("Missing required fields: password")
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    _check_role(patch["role"])
    password_hash = hash_password(password)

    with unit_of_work():
        _ensure_unique_username(patch["username"])
        user = User(password_hash=password_hash)
        apply_patch(user, patch)
        db.session.add(user)

    current_app.logger.info("User created: id=%s username=%s role=%s", user.id, user.username, user.role)
    return user


def update_user(user_id: int, payload: dict, *, acting_user_id: int) -> User:
    payload, password = _split_password(payload)
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    if not patch and password is None:
        raise ValidationError("No fields to update")
    if "role" in patch:
        _check_role(patch["role"])
    password_hash = hash_password(password) if password is not None else None

    with unit_of_work():
        user = get_user(user_id)
        if user.id == acting_user_id:
            if patch.get("is_active") is False:
                raise InvalidStateError("You cannot deactivate your own account")
            if "role" in patch and patch["role"] != user.role:
                raise InvalidStateError("You cannot change your own role")
        if "username" in patch:
            _ensure_unique_username(patch["username"], exclude_id=user.id)
        apply_patch(user, patch)
        if password_hash is not None:
            user.password_hash = password_hash
        if password_hash is not None or patch.get("is_active") is False:
            revoke_all_user_sessions(user.id, reason="Account updated by administrator", commit=False)

    return user


def deactivate_user(user_id: int, *, acting_user_id: int) -> None:
    """Soft delete: keeps the row for attribution, revokes all sessions."""
    if user_id == acting_user_id:
        raise InvalidStateError("You cannot deactivate your own account")

    with unit_of_work():
        user = get_user(user_id)
        if not user.is_active:
            raise NotFoundError("User not found", details={"user_id": user_id})
        user.is_active = False
        revoke_all_user_sessions(user.id, reason="User deactivated", commit=False)

    current_app.logger.info("User deactivated: id=%s by user=%s", user_id, acting_user_id)
