import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from courseware.core.error_codes import ErrorCode
from courseware.core.errors import forbidden, invalid, not_found
from courseware.core.roles import Role
from courseware.models import User

logger = logging.getLogger(__name__)

# requester role -> legal (current role, new role) pairs. SUPERADMIN is never
# granted or revoked here.
ROLE_TRANSITIONS: dict[Role, frozenset[tuple[Role, Role]]] = {
    Role.ADMIN: frozenset({(Role.USER, Role.ADMIN)}),
    Role.SUPERADMIN: frozenset({(Role.USER, Role.ADMIN), (Role.ADMIN, Role.USER)}),
}


def _as_role(role: Role | str | None) -> Role | None:
    try:
        return Role(role) if role is not None else None
    except ValueError:
        return None


def is_transition_allowed(requester_role: Role | str | None, current_role: Role, new_role: Role) -> bool:
    requester = _as_role(requester_role)
    if requester is None:
        return False
    return (current_role, new_role) in ROLE_TRANSITIONS.get(requester, frozenset())


def change_role(db: Session, target_user_id: uuid.UUID, new_role: Role, requester_role: Role | str) -> User:
    """Apply a role change after checking it against ``ROLE_TRANSITIONS``.

    Check order: target existence, same-role, transition table. A requester
    role without an entry in the table may change nothing. The target row stays
    locked from the check until commit.
    """
    user = db.execute(
        select(User).where(User.id == target_user_id, User.deleted_at.is_(None)).with_for_update()
    ).scalars().first()
    if not user:
        raise not_found(ErrorCode.USER_NOT_FOUND, "User not found")

    current = Role(user.role)
    if current == new_role:
        raise invalid(ErrorCode.SAME_ROLE, f"User already has role {new_role.value}")

    if not is_transition_allowed(requester_role, current, new_role):
        logger.warning(
            "Rejected role change %s -> %s for user %s by %s", current.value, new_role.value, user.id, requester_role
        )
        raise forbidden(ErrorCode.INSUFFICIENT_PERMISSIONS, "Insufficient permissions for this role change")

    user.role = new_role.value
    db.commit()
    db.refresh(user)
    logger.info("Changed role of user %s: %s -> %s", user.id, current.value, new_role.value)
    return user
