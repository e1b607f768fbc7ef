# Overview: Utility functions for permission lookups.

from .definitions import PERMISSION_DEFINITIONS
from .roles import Role, ROLE_PERMISSIONS


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def permissions_for_role(role) -> frozenset[str]:
    """Capability set for a role (accepts Role or its string value)."""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def role_has_permission(role, code: str) -> bool:
    return code in permissions_for_role(role)
