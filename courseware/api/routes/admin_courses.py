import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from courseware.api.deps import require_admin
from courseware.api.routes.videos import video_out
from courseware.db.session import get_db
from courseware.models import Course
from courseware.schemas.courses import (
    AdminCourseCreateRequest,
    AdminCourseListResponse,
    AdminCourseResponse,
    AdminCourseUpdateRequest,
)
from courseware.services.course_service import (
    create_course,
    delete_course,
    get_course_or_404,
    list_all_courses,
    update_course,
)
from courseware.services.video_order_service import list_course_videos

router = APIRouter(prefix="/v1/admin/courses", tags=["admin"], dependencies=[Depends(require_admin)])


def _course_response(course: Course, db: Session | None = None) -> AdminCourseResponse:
    videos = list_course_videos(db, course.id) if db is not None else []
    return AdminCourseResponse(
        id=str(course.id),
        title=course.title,
        summary=course.summary,
        description_markdown=course.description_markdown,
        image_path=course.image_path,
        is_published=course.is_published,
        is_public=course.is_public,
        created_at=course.created_at.isoformat(),
        videos=[video_out(video) for video in videos],
    )


@router.get("", response_model=AdminCourseListResponse)
def list_courses(db: Session = Depends(get_db)) -> AdminCourseListResponse:
    items = [_course_response(course) for course in list_all_courses(db)]
    return AdminCourseListResponse(courses=items, total=len(items))


@router.post("", response_model=AdminCourseResponse, status_code=status.HTTP_201_CREATED)
def create_course_endpoint(payload: AdminCourseCreateRequest, db: Session = Depends(get_db)) -> AdminCourseResponse:
    return _course_response(create_course(db, payload))


@router.get("/{course_id}", response_model=AdminCourseResponse)
def get_course(course_id: uuid.UUID, db: Session = Depends(get_db)) -> AdminCourseResponse:
    return _course_response(get_course_or_404(db, course_id), db)


@router.patch("/{course_id}", response_model=AdminCourseResponse)
def update_course_endpoint(
    course_id: uuid.UUID, payload: AdminCourseUpdateRequest, db: Session = Depends(get_db)
) -> AdminCourseResponse:
    return _course_response(update_course(db, course_id, payload), db)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_course_endpoint(course_id: uuid.UUID, db: Session = Depends(get_db)) -> None:
    delete_course(db, course_id)
