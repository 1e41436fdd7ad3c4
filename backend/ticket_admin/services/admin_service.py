"""Account, role and grant administration.

Every mutation loads the rows it needs, asks the authorization engine whether
the change is allowed, then commits in a single transaction. The unique
``(user_id, permission_id)`` constraint is the last line against two
concurrent grants of the same pair; its violation surfaces as DuplicateGrant.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ticket_admin.clock import utc_now
from ticket_admin.errors import Conflict, DuplicateGrant, Forbidden, NotFound, Unauthorized
from ticket_admin.models.permission import Permission, UserPermission
from ticket_admin.models.user import User
from ticket_admin.security import hash_password, load_user, verify_password
from ticket_admin.services import authorization
from ticket_admin.services.authorization import ADMIN_TIER, ManageAction, Principal, Role

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: str) -> User:
    user = load_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _get_permission(db: Session, permission_id: str) -> Permission:
    permission = db.query(Permission).filter(Permission.id == permission_id).first()
    if not permission:
        raise NotFound("Permission not found")
    return permission


# Accounts


def register_user(db: Session, email: str, name: str, password: str) -> User:
    """Self-registration for the back-office.

    New accounts start as ADMIN with zero grants: they can sign in but every
    permission-gated route refuses them until a super admin assigns grants.
    """
    if db.query(User).filter(User.email == email).first():
        raise Conflict("User already exists")

    user = User(email=email, name=name, password_hash=hash_password(password), role=Role.admin)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    logger.info("Registered user %s (%s) pending permission grants", user.id, email)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Check credentials and the back-office role gate for sign-in."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("User account is inactive")
    if Role(user.role) not in ADMIN_TIER:
        raise Forbidden("Insufficient permissions")
    logger.info("User %s signed in", user.id)
    return load_user(db, user.id)


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> None:
    user = _get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise Unauthorized("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("User %s changed password", user_id)


# Roles


def promote_user(db: Session, actor: Principal, user_id: str) -> User:
    target = _get_user(db, user_id)
    new_role = authorization.promote_principal(actor, Principal.from_user(target))

    target.role = new_role
    target.promoted_at = utc_now()
    target.promoted_by_id = actor.id
    db.commit()
    db.refresh(target)
    logger.info("User %s promoted to %s by %s", user_id, new_role.value, actor.id)
    return target


def demote_user(db: Session, actor: Principal, user_id: str) -> User:
    """Drop an ADMIN back to CUSTOMER and revoke all of its grants."""
    target = _get_user(db, user_id)
    authorization.ensure_can_manage_principal(actor, Principal.from_user(target), ManageAction.demote)

    target.role = Role.customer
    target.promoted_at = None
    target.promoted_by_id = None
    target.user_permissions.clear()
    db.commit()
    db.refresh(target)
    logger.info("User %s demoted by %s; grants removed", user_id, actor.id)
    return target


def delete_user(db: Session, actor: Principal, user_id: str) -> None:
    target = _get_user(db, user_id)
    authorization.ensure_can_manage_principal(actor, Principal.from_user(target), ManageAction.delete)

    db.delete(target)
    db.commit()
    logger.info("User %s deleted by %s", user_id, actor.id)


def list_users(db: Session, actor: Principal) -> list[User]:
    """SUPER_ADMIN sees every admin-tier account; an ADMIN sees those it promoted."""
    query = db.query(User)
    if actor.role == Role.super_admin:
        query = query.filter(User.role.in_(list(ADMIN_TIER)))
    else:
        query = query.filter(User.promoted_by_id == actor.id)
    return query.order_by(User.created_at.desc()).all()


def list_admins(db: Session) -> list[User]:
    return db.query(User).filter(User.role == Role.admin).order_by(User.name).all()


# Permissions and grants


def create_permission(db: Session, actor: Principal, name: str, description: str) -> Permission:
    if actor.role != Role.super_admin:
        raise Forbidden("Only super admins can create permissions")
    if db.query(Permission).filter(Permission.name == name).first():
        raise Conflict("Permission already exists")

    permission = Permission(name=name, description=description)
    db.add(permission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Permission already exists")
    db.refresh(permission)
    logger.info("Permission %s created by %s", name, actor.id)
    return permission


def grant(db: Session, actor: Principal, user_id: str, permission_id: str) -> UserPermission:
    target = _get_user(db, user_id)
    permission = _get_permission(db, permission_id)
    approved = authorization.grant_permission(actor, Principal.from_user(target), permission)

    user_permission = UserPermission(
        user_id=approved.principal_id,
        permission_id=approved.permission_id,
        granted_by_id=approved.granted_by_principal_id,
        granted_at=approved.granted_at,
    )
    db.add(user_permission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateGrant(f"Permission {permission.name} is already assigned to this user")
    db.refresh(user_permission)
    logger.info("Granted %s to user %s by %s", permission.name, user_id, actor.id)
    return user_permission


def revoke(db: Session, actor: Principal, user_id: str, permission_id: str) -> None:
    target = _get_user(db, user_id)
    permission = _get_permission(db, permission_id)
    authorization.revoke_permission(actor, Principal.from_user(target), permission)

    deleted = (
        db.query(UserPermission)
        .filter(UserPermission.user_id == user_id, UserPermission.permission_id == permission_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Revoked %s from user %s by %s (%d row)", permission.name, user_id, actor.id, deleted)
