import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from courseware.api.deps import AdminUser, CurrentUser
from courseware.core.error_codes import ErrorCode
from courseware.core.errors import forbidden
from courseware.core.roles import is_admin_tier
from courseware.db.session import get_db
from courseware.schemas.enrollments import UserCourseItem, UserCoursesResponse
from courseware.schemas.users import RoleUpdateRequest, RoleUpdateResponse, UserListItem, UserListResponse
from courseware.services import enrollment_service, role_service, user_service
from courseware.services.auth_service import user_out

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(_: AdminUser, db: Session = Depends(get_db)) -> UserListResponse:
    items = [
        UserListItem(
            **user_out(user).model_dump(),
            is_online=user.is_online,
            created_at=user.created_at.isoformat(),
            last_seen=user.last_seen.isoformat() if user.last_seen else None,
            courses_count=count,
        )
        for user, count in user_service.list_users(db)
    ]
    return UserListResponse(users=items, total=len(items))


@router.patch("/{user_id}/role", response_model=RoleUpdateResponse)
def update_user_role(
    user_id: uuid.UUID, payload: RoleUpdateRequest, admin: AdminUser, db: Session = Depends(get_db)
) -> RoleUpdateResponse:
    user = role_service.change_role(db, user_id, payload.role, admin.role)
    return RoleUpdateResponse(user=user_out(user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_user(user_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)) -> None:
    if user_id != current_user.id:
        raise forbidden(ErrorCode.INSUFFICIENT_PERMISSIONS, "You can only delete your own account")
    user_service.soft_delete_user(db, user_id)


@router.get("/{user_id}/courses", response_model=UserCoursesResponse)
def list_user_courses(user_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)) -> UserCoursesResponse:
    if user_id != current_user.id and not is_admin_tier(current_user.role):
        raise forbidden(ErrorCode.INSUFFICIENT_PERMISSIONS, "You can only list your own courses")
    user_service.get_live_user_or_404(db, user_id)
    items = [
        UserCourseItem(
            id=str(course.id),
            title=course.title,
            summary=course.summary,
            image_path=course.image_path,
            is_public=course.is_public,
            enrolled_at=enrollment.created_at.isoformat(),
        )
        for enrollment, course in enrollment_service.list_user_courses(db, user_id)
    ]
    return UserCoursesResponse(user_id=str(user_id), courses=items, total=len(items))
