from __future__ import annotations

import uuid

from sqlalchemy import delete as sql_delete
from sqlalchemy import select, update as sql_update
from sqlalchemy.orm import Session

from courseware.core.error_codes import ErrorCode
from courseware.core.errors import forbidden, not_found
from courseware.core.roles import is_admin_tier
from courseware.models import Course, Enrollment, User, Video
from courseware.schemas.courses import AdminCourseCreateRequest, AdminCourseUpdateRequest
from courseware.services.enrollment_service import find_enrollment
from courseware.services.video_order_service import list_course_videos
from courseware.services.visibility import Visibility, filter_videos, resolve_visibility, video_visibility


def get_course_or_404(db: Session, course_id: uuid.UUID) -> Course:
    course = db.get(Course, course_id)
    if not course:
        raise not_found(ErrorCode.COURSE_NOT_FOUND, "Course not found")
    return course


def create_course(db: Session, payload: AdminCourseCreateRequest) -> Course:
    course = Course(
        title=payload.title.strip(),
        summary=payload.summary.strip(),
        description_markdown=payload.description_markdown,
        image_path=payload.image_path.strip(),
        is_published=payload.is_published,
        is_public=payload.is_public,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def update_course(db: Session, course_id: uuid.UUID, payload: AdminCourseUpdateRequest) -> Course:
    course = get_course_or_404(db, course_id)
    for field in ["title", "summary", "description_markdown", "image_path", "is_published", "is_public"]:
        value = getattr(payload, field, None)
        if value is not None:
            setattr(course, field, value.strip() if isinstance(value, str) and field != "description_markdown" else value)
    db.commit()
    db.refresh(course)
    return course


def delete_course(db: Session, course_id: uuid.UUID) -> None:
    """Hard-delete a course and its enrollments; its videos are left detached."""
    course = get_course_or_404(db, course_id)
    db.execute(sql_update(Video).where(Video.course_id == course.id).values(course_id=None))
    db.execute(sql_delete(Enrollment).where(Enrollment.course_id == course.id))
    db.delete(course)
    db.commit()


def list_all_courses(db: Session) -> list[Course]:
    return list(db.execute(select(Course).order_by(Course.created_at.desc())).scalars().all())


def course_visibility(db: Session, course: Course, viewer: User | None, *, trailer_preview: bool = False) -> Visibility:
    is_enrolled = viewer is not None and find_enrollment(db, viewer.id, course.id) is not None
    return resolve_visibility(
        is_published=course.is_published,
        is_public=course.is_public,
        viewer_role=viewer.role if viewer else None,
        is_enrolled=is_enrolled,
        trailer_preview=trailer_preview,
    )


def list_catalog(db: Session, viewer: User | None) -> list[tuple[Course, Visibility]]:
    """Courses the viewer may see at all, newest first, with their access level.

    Guests also get private courses whose trailer they may preview.
    """
    stmt = select(Course).order_by(Course.created_at.desc())
    if not (viewer and is_admin_tier(viewer.role)):
        stmt = stmt.where(Course.is_published.is_(True))
    courses = db.execute(stmt).scalars().all()

    enrolled_ids: set[uuid.UUID] = set()
    if viewer is not None:
        enrolled_ids = set(
            db.execute(select(Enrollment.course_id).where(Enrollment.user_id == viewer.id)).scalars().all()
        )

    items: list[tuple[Course, Visibility]] = []
    for course in courses:
        visibility = resolve_visibility(
            is_published=course.is_published,
            is_public=course.is_public,
            viewer_role=viewer.role if viewer else None,
            is_enrolled=course.id in enrolled_ids,
            trailer_preview=True,
        )
        if visibility is not Visibility.DENIED:
            items.append((course, visibility))
    return items


def _deny(course: Course) -> None:
    # Unpublished courses do not exist for non-admin viewers.
    if not course.is_published:
        raise not_found(ErrorCode.COURSE_NOT_FOUND, "Course not found")
    raise forbidden(ErrorCode.COURSE_ACCESS_DENIED, "You do not have access to this course")


def get_course_detail(db: Session, course_id: uuid.UUID, viewer: User | None) -> tuple[Course, Visibility, list[Video]]:
    course = get_course_or_404(db, course_id)
    visibility = course_visibility(db, course, viewer)
    if visibility is Visibility.DENIED:
        _deny(course)
    visibility = video_visibility(visibility, is_guest=viewer is None)
    return course, visibility, filter_videos(list_course_videos(db, course.id), visibility)


def get_course_preview(db: Session, course_id: uuid.UUID, viewer: User | None) -> tuple[Course, list[Video]]:
    """Trailer-only view of a course; guests may preview private courses here."""
    course = get_course_or_404(db, course_id)
    visibility = course_visibility(db, course, viewer, trailer_preview=True)
    if visibility is Visibility.DENIED:
        _deny(course)
    return course, filter_videos(list_course_videos(db, course.id), Visibility.TRAILER_ONLY)


def get_video_for_viewer(db: Session, video_id: uuid.UUID, viewer: User | None) -> Video:
    video = db.get(Video, video_id)
    if not video:
        raise not_found(ErrorCode.VIDEO_NOT_FOUND, "Video not found")

    if video.course_id is None:
        if viewer and is_admin_tier(viewer.role):
            return video
        raise not_found(ErrorCode.VIDEO_NOT_FOUND, "Video not found")

    course = get_course_or_404(db, video.course_id)
    visibility = course_visibility(db, course, viewer)
    if visibility is Visibility.DENIED:
        _deny(course)
    visibility = video_visibility(visibility, is_guest=viewer is None)
    if visibility is Visibility.TRAILER_ONLY and not video.is_trailer:
        raise forbidden(ErrorCode.COURSE_ACCESS_DENIED, "Sign in to watch this video")
    return video
