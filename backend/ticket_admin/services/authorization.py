"""Authorization engine: role gate first, then fine-grained permission grants.

Pure decision functions over data passed in by the caller. Nothing here
touches the database or the request: the acting principal is always an
explicit argument, and persistence of grants/role changes is the caller's job.

Rules:
- SUPER_ADMIN bypasses every explicit grant check.
- Grants only mean something for ADMIN-tier principals; a CUSTOMER or
  EVENT_CREATOR never passes ``has_permission``, whatever its grant set says.
- Only SUPER_ADMIN may grant/revoke permissions or promote/demote users.
- SUPER_ADMIN accounts can never be deleted or demoted, and nobody may
  delete or demote themselves.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from ticket_admin.clock import utc_now
from ticket_admin.errors import (
    AlreadyPromoted,
    CannotModifySuperAdmin,
    DuplicateGrant,
    Forbidden,
    GrantNotFound,
    NotAdminTier,
    SelfTargetNotAllowed,
)


class Role(str, enum.Enum):
    customer = "CUSTOMER"
    event_creator = "EVENT_CREATOR"
    admin = "ADMIN"
    super_admin = "SUPER_ADMIN"


ADMIN_TIER = frozenset({Role.admin, Role.super_admin})


class ManageAction(str, enum.Enum):
    delete = "delete"
    promote = "promote"
    demote = "demote"


@dataclass(frozen=True)
class Principal:
    """The acting identity for an authorization decision."""

    id: str
    role: Role
    granted_permissions: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user: Any) -> "Principal":
        """Build a principal from a persisted ``User`` and its grants."""
        return cls(
            id=str(user.id),
            role=Role(user.role),
            granted_permissions=frozenset(up.permission.name for up in user.user_permissions),
        )


@dataclass(frozen=True)
class Grant:
    principal_id: str
    permission_id: str
    granted_by_principal_id: str
    granted_at: datetime


# Checks


def has_role(principal: Principal, allowed_roles: Iterable[Role]) -> bool:
    return principal.role in set(allowed_roles)


def has_permission(principal: Principal, permission_name: str) -> bool:
    """True if the principal may exercise ``permission_name``.

    SUPER_ADMIN short-circuits to True, even for names that do not exist in
    the permission table. Anyone below ADMIN is denied before the grant set
    is looked at.
    """
    if principal.role == Role.super_admin:
        return True
    if principal.role not in ADMIN_TIER:
        return False
    return permission_name in principal.granted_permissions


def owns_resource(principal: Principal, owner_id: Optional[str]) -> bool:
    """Ownership scope: ADMINs act only on what they created."""
    if principal.role == Role.super_admin:
        return True
    return owner_id is not None and str(owner_id) == principal.id


def authorize(principal: Principal, permission_name: str, owner_id: Optional[str] = None) -> None:
    """Raise ``Forbidden`` unless the capability (and ownership, if given) holds."""
    if not has_permission(principal, permission_name):
        raise Forbidden(f"Missing permission {permission_name}")
    if owner_id is not None and not owns_resource(principal, owner_id):
        raise Forbidden("You can only manage resources you created")


# Principal management


def _management_violation(actor: Principal, target: Principal, action: ManageAction):
    """Return the error that forbids ``action``, or None if it is allowed."""
    if action == ManageAction.promote:
        if actor.role != Role.super_admin:
            return Forbidden("Only super admins can promote users")
        if target.role == Role.super_admin:
            return CannotModifySuperAdmin("Cannot promote SUPER_ADMIN")
        if target.role == Role.admin:
            return AlreadyPromoted()
        return None

    if actor.id == target.id:
        return SelfTargetNotAllowed(f"You cannot {action.value} your own account")
    if target.role == Role.super_admin:
        return CannotModifySuperAdmin(f"Cannot {action.value} a super admin")

    if action == ManageAction.demote:
        if actor.role != Role.super_admin:
            return Forbidden("Only super admins can demote admins")
        if target.role != Role.admin:
            return NotAdminTier("Only admins can be demoted")
        return None

    # delete
    if target.role == Role.admin and actor.role != Role.super_admin:
        return Forbidden("Only super admins can delete admins")
    if actor.role not in ADMIN_TIER:
        return Forbidden("Only admins can delete users")
    return None


def can_manage_principal(
    actor: Principal, target: Principal, action: ManageAction = ManageAction.delete
) -> bool:
    return _management_violation(actor, target, action) is None


def ensure_can_manage_principal(actor: Principal, target: Principal, action: ManageAction) -> None:
    violation = _management_violation(actor, target, action)
    if violation is not None:
        raise violation


def promote_principal(actor: Principal, target: Principal) -> Role:
    """Validate a promotion and return the target's new role."""
    ensure_can_manage_principal(actor, target, ManageAction.promote)
    return Role.admin


# Grants


def grant_permission(
    actor: Principal,
    target: Principal,
    permission: Any,
    clock: Callable[[], datetime] = utc_now,
) -> Grant:
    """Validate a new grant of ``permission`` (anything with ``id``/``name``)."""
    if actor.role != Role.super_admin:
        raise Forbidden("Only super admins can assign permissions")
    if target.role not in ADMIN_TIER:
        raise NotAdminTier()
    if permission.name in target.granted_permissions:
        raise DuplicateGrant(f"Permission {permission.name} is already assigned to this user")
    return Grant(
        principal_id=target.id,
        permission_id=str(permission.id),
        granted_by_principal_id=actor.id,
        granted_at=clock(),
    )


def revoke_permission(actor: Principal, target: Principal, permission: Any) -> None:
    if actor.role != Role.super_admin:
        raise Forbidden("Only super admins can revoke permissions")
    if permission.name not in target.granted_permissions:
        raise GrantNotFound(f"Permission {permission.name} is not assigned to this user")
