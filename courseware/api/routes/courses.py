import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from courseware.api.deps import AdminUser, CurrentUser, OptionalUser
from courseware.api.routes.videos import video_out
from courseware.db.session import get_db
from courseware.models import Course, Enrollment
from courseware.schemas.courses import CourseAccessResponse, CourseDetailResponse, CourseListItem, CourseListResponse
from courseware.schemas.enrollments import (
    CourseEnrollmentItem,
    CourseEnrollmentsResponse,
    EnrollmentOut,
    EnrollRequest,
)
from courseware.schemas.videos import ReorderRequest, ReorderResponse
from courseware.services import course_service, enrollment_service, video_order_service
from courseware.services.visibility import Visibility

router = APIRouter(prefix="/v1/courses", tags=["courses"])


def _enrollment_out(enrollment: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=str(enrollment.id),
        user_id=str(enrollment.user_id),
        course_id=str(enrollment.course_id),
        enrolled_by=str(enrollment.enrolled_by) if enrollment.enrolled_by else None,
        enrolled_at=enrollment.created_at.isoformat(),
    )


def _list_item(course: Course, access: str) -> CourseListItem:
    return CourseListItem(
        id=str(course.id),
        title=course.title,
        summary=course.summary,
        image_path=course.image_path,
        is_public=course.is_public,
        access=access,
    )


@router.get("", response_model=CourseListResponse)
def list_courses(viewer: OptionalUser, db: Session = Depends(get_db)) -> CourseListResponse:
    items = [_list_item(course, visibility.value) for course, visibility in course_service.list_catalog(db, viewer)]
    return CourseListResponse(courses=items, total=len(items))


@router.get("/{course_id}", response_model=CourseDetailResponse)
def get_course(course_id: uuid.UUID, viewer: OptionalUser, db: Session = Depends(get_db)) -> CourseDetailResponse:
    course, visibility, videos = course_service.get_course_detail(db, course_id, viewer)
    return CourseDetailResponse(
        id=str(course.id),
        title=course.title,
        summary=course.summary,
        description_markdown=course.description_markdown,
        image_path=course.image_path,
        is_public=course.is_public,
        access=visibility.value,
        videos=[video_out(video) for video in videos],
    )


@router.get("/{course_id}/preview", response_model=CourseDetailResponse)
def preview_course(course_id: uuid.UUID, viewer: OptionalUser, db: Session = Depends(get_db)) -> CourseDetailResponse:
    course, trailers = course_service.get_course_preview(db, course_id, viewer)
    return CourseDetailResponse(
        id=str(course.id),
        title=course.title,
        summary=course.summary,
        description_markdown=course.description_markdown,
        image_path=course.image_path,
        is_public=course.is_public,
        access=Visibility.TRAILER_ONLY.value,
        videos=[video_out(video) for video in trailers],
    )


@router.get("/{course_id}/access", response_model=CourseAccessResponse)
def check_access(course_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)) -> CourseAccessResponse:
    return CourseAccessResponse(
        course_id=str(course_id),
        has_access=enrollment_service.has_access(db, current_user.id, course_id),
    )


@router.post("/{course_id}/join", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def join_course(course_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)) -> EnrollmentOut:
    return _enrollment_out(enrollment_service.self_join(db, current_user.id, course_id))


@router.post("/{course_id}/enroll", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll_user(
    course_id: uuid.UUID, payload: EnrollRequest, admin: AdminUser, db: Session = Depends(get_db)
) -> EnrollmentOut:
    return _enrollment_out(enrollment_service.enroll(db, admin.id, payload.user_id, course_id))


@router.delete(
    "/{course_id}/enrollments/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def unenroll_user(course_id: uuid.UUID, user_id: uuid.UUID, _: AdminUser, db: Session = Depends(get_db)) -> None:
    enrollment_service.unenroll(db, user_id, course_id)


@router.get("/{course_id}/enrollments", response_model=CourseEnrollmentsResponse)
def list_enrollments(course_id: uuid.UUID, _: AdminUser, db: Session = Depends(get_db)) -> CourseEnrollmentsResponse:
    rows = enrollment_service.list_course_enrollments(db, course_id)
    items = [
        CourseEnrollmentItem(
            user_id=str(user.id),
            username=user.username,
            email=user.email,
            enrolled_by=str(enrollment.enrolled_by) if enrollment.enrolled_by else None,
            enrolled_at=enrollment.created_at.isoformat(),
        )
        for enrollment, user in rows
    ]
    return CourseEnrollmentsResponse(course_id=str(course_id), enrollments=items, total=len(items))


@router.post("/{course_id}/videos/reorder", response_model=ReorderResponse)
def reorder_videos(
    course_id: uuid.UUID, payload: ReorderRequest, _: AdminUser, db: Session = Depends(get_db)
) -> ReorderResponse:
    videos = video_order_service.reorder(db, course_id, payload.items)
    return ReorderResponse(course_id=str(course_id), videos=[video_out(video) for video in videos])
