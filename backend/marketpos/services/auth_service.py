# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every sale, purchase order and stock movement names its actor. Uses
bcrypt for password hashing.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters required
- Session tokens managed separately (see session_service.py)
"""

import bcrypt

from ..errors import ValidationError
from ..extensions import db
from ..models import User
from ..validation import enforce_password_policy
from marketpos.time_utils import utcnow
from . import session_service


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated against the policy before hashing.
    """
    enforce_password_policy(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def authenticate(username: str, password: str) -> User | None:
    """
    Check credentials. Returns the user on success, None otherwise.

    Inactive accounts never authenticate.
    """
    if not username or not password:
        return None

    user = db.session.query(User).filter_by(username=username.strip()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    """
    Change a user's own password and revoke their other sessions.

    The caller must re-authenticate on other devices afterwards.
    """
    if not verify_password(current_password or "", user.password_hash):
        raise ValidationError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must differ from the current password")

    user.password_hash = hash_password(new_password)
    session_service.revoke_all_user_sessions(user.id, reason="Password changed", commit=False)
    db.session.commit()
