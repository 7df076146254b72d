from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


# Roles allowed to mutate courses/videos and manage enrollments.
ADMIN_TIER_ROLES = frozenset({Role.ADMIN, Role.SUPERADMIN})


def is_admin_tier(role: Role | str | None) -> bool:
    if role is None:
        return False
    try:
        return Role(role) in ADMIN_TIER_ROLES
    except ValueError:
        return False
