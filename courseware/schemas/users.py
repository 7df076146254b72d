from pydantic import BaseModel

from courseware.core.roles import Role
from courseware.schemas.auth import UserOut


class UserListItem(UserOut):
    is_online: bool
    created_at: str
    last_seen: str | None = None
    courses_count: int


class UserListResponse(BaseModel):
    users: list[UserListItem]
    total: int


class RoleUpdateRequest(BaseModel):
    role: Role


class RoleUpdateResponse(BaseModel):
    user: UserOut
