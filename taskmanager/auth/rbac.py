"""
Role-based access control: role hierarchy and permission table.

Two independent checks are offered:

  require_any_role(identity, roles)
      Rank-based. The caller passes if their role is listed, or if their
      rank is at least the lowest rank among the listed roles. A higher
      role therefore always satisfies a lower-role requirement:

          user (1) < moderator (2) < admin (3) < owner (4)

      A role missing from ROLE_HIERARCHY has no rank and can only pass by
      being listed literally.

  require_permission(identity, permission)
      Grant-based. The caller passes only if their role's entry in
      ROLE_PERMISSIONS contains the permission; rank plays no part. A role
      with no entry raises UnknownRole, which clients see as a plain 403.

Both tables are built once at import and exposed read-only, so concurrent
requests can consult them without locking.
"""

import enum
from collections.abc import Iterable
from types import MappingProxyType

from taskmanager.auth.identity import Identity
from taskmanager.exceptions import Forbidden, UnknownRole


class Role(str, enum.Enum):
    """
    Roles a user can hold.

    Inherits from str so the value serializes naturally to JSON and
    compares equal to the plain string stored in the database.
    """
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    OWNER = "owner"


class Permission(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    ADMIN = "admin"


ROLE_HIERARCHY = MappingProxyType({
    Role.USER.value: 1,
    Role.MODERATOR.value: 2,
    Role.ADMIN.value: 3,
    Role.OWNER.value: 4,
})

# admin and owner hold the same grants; only the hierarchy ranks owner higher
ROLE_PERMISSIONS = MappingProxyType({
    Role.USER.value: frozenset({Permission.READ, Permission.WRITE}),
    Role.MODERATOR.value: frozenset({Permission.READ, Permission.WRITE, Permission.DELETE}),
    Role.ADMIN.value: frozenset(Permission),
    Role.OWNER.value: frozenset(Permission),
})


def _role_name(role: str) -> str:
    return role.value if isinstance(role, Role) else role


def role_satisfies(role: str, allowed_roles: Iterable[str]) -> bool:
    """Return True if `role` is listed or outranks the lowest listed role."""
    role = _role_name(role)
    allowed = [_role_name(allowed_role) for allowed_role in allowed_roles]
    if role in allowed:
        return True

    rank = ROLE_HIERARCHY.get(role)
    if rank is None:
        return False

    allowed_ranks = [ROLE_HIERARCHY[name] for name in allowed if name in ROLE_HIERARCHY]
    return bool(allowed_ranks) and rank >= min(allowed_ranks)


def require_any_role(identity: Identity, allowed_roles: Iterable[str]) -> None:
    """
    Raises:
        Forbidden: The identity's role neither appears in nor outranks
            `allowed_roles`.
    """
    if not role_satisfies(identity.role, allowed_roles):
        raise Forbidden()


def has_permission(role: str, permission: Permission) -> bool:
    """
    Raises:
        UnknownRole: `role` has no entry in ROLE_PERMISSIONS.
    """
    granted = ROLE_PERMISSIONS.get(_role_name(role))
    if granted is None:
        raise UnknownRole(role)
    return Permission(permission) in granted


def require_permission(identity: Identity, permission: Permission) -> None:
    """
    Raises:
        UnknownRole: The identity's role is not in the permission table.
        Forbidden: The role does not hold `permission`.
    """
    if not has_permission(identity.role, permission):
        raise Forbidden()
