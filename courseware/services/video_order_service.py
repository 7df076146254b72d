"""Video ordering within a course.

The only invariant is uniqueness of ``order`` per course; orders need not be
contiguous and a reorder may touch any subset of a course's videos. Locks are
always taken course first, then videos, so reorder and attach on the same course
serialize instead of deadlocking. ``uq_video_course_order`` is the last line of
defense and surfaces as VIDEO_ORDER_CONFLICT.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from courseware.core.error_codes import ErrorCode
from courseware.core.errors import ApiError, ErrorKind, conflict, invalid, not_found
from courseware.db.errors import StorageError, classify_integrity_error
from courseware.models import Course, Video
from courseware.schemas.videos import ReorderItem, VideoCreateRequest, VideoUpdateRequest

logger = logging.getLogger(__name__)


def _lock_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.execute(select(Course).where(Course.id == course_id).with_for_update()).scalars().first()
    if not course:
        raise not_found(ErrorCode.COURSE_NOT_FOUND, "Course not found")
    return course


def _lock_video(db: Session, video_id: uuid.UUID) -> Video:
    video = db.execute(select(Video).where(Video.id == video_id).with_for_update()).scalars().first()
    if not video:
        raise not_found(ErrorCode.VIDEO_NOT_FOUND, "Video not found")
    return video


def _ensure_order_free(db: Session, course_id: uuid.UUID, order: int, *, exclude_video_id: uuid.UUID | None = None) -> None:
    stmt = select(Video.id).where(Video.course_id == course_id, Video.order == order)
    if exclude_video_id is not None:
        stmt = stmt.where(Video.id != exclude_video_id)
    if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
        raise conflict(ErrorCode.VIDEO_ORDER_CONFLICT, "Video order must be unique within course")


def _flush(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if classify_integrity_error(exc) is StorageError.UNIQUE_VIOLATION:
            raise conflict(ErrorCode.VIDEO_ORDER_CONFLICT, "Video order must be unique within course") from exc
        raise ApiError(ErrorKind.INTERNAL, ErrorCode.DATABASE_ERROR, "Failed to store video") from exc


def validate_reorder_items(items: Sequence[ReorderItem]) -> None:
    orders = [item.order for item in items]
    if len(set(orders)) != len(orders):
        raise invalid(ErrorCode.DUPLICATE_ORDER, "Duplicate order values in reorder request")
    video_ids = [item.video_id for item in items]
    if len(set(video_ids)) != len(video_ids):
        raise invalid(ErrorCode.DUPLICATE_VIDEO_ID, "Duplicate video ids in reorder request")


def list_course_videos(db: Session, course_id: uuid.UUID) -> list[Video]:
    return list(
        db.execute(select(Video).where(Video.course_id == course_id).order_by(Video.order.asc())).scalars().all()
    )


def reorder(db: Session, course_id: uuid.UUID, items: Sequence[ReorderItem]) -> list[Video]:
    """Apply a batch of order changes atomically.

    Any video not belonging to ``course_id`` aborts the whole batch before a
    single row is modified.
    """
    validate_reorder_items(items)

    course = _lock_course(db, course_id)
    video_ids = [item.video_id for item in items]
    videos = db.execute(select(Video).where(Video.id.in_(video_ids)).with_for_update()).scalars().all()
    by_id = {video.id: video for video in videos}

    for item in items:
        video = by_id.get(item.video_id)
        if video is None or video.course_id != course.id:
            raise not_found(ErrorCode.VIDEO_NOT_IN_COURSE, f"Video {item.video_id} does not belong to this course")

    # Park moved rows on negative orders first so swaps never collide mid-flush.
    for index, item in enumerate(items):
        by_id[item.video_id].order = -(index + 1)
    _flush(db)
    for item in items:
        by_id[item.video_id].order = item.order
    _flush(db)
    db.commit()

    logger.info("Reordered %d videos in course %s", len(items), course.id)
    return list_course_videos(db, course.id)


def attach(
    db: Session,
    video_id: uuid.UUID,
    course_id: uuid.UUID,
    *,
    order: int | None = None,
    is_trailer: bool | None = None,
) -> Video:
    """Move a video into a course, keeping its order unless one is given.

    An occupied order is a conflict; other videos are never shifted.
    """
    course = _lock_course(db, course_id)
    video = _lock_video(db, video_id)

    target_order = video.order if order is None else order
    _ensure_order_free(db, course.id, target_order, exclude_video_id=video.id)

    video.course_id = course.id
    video.order = target_order
    if is_trailer is not None:
        video.is_trailer = is_trailer
    _flush(db)
    db.commit()
    db.refresh(video)
    logger.info("Attached video %s to course %s at order %d", video.id, course.id, target_order)
    return video


def detach(db: Session, video_id: uuid.UUID) -> Video:
    video = _lock_video(db, video_id)
    if video.course_id is None:
        raise invalid(ErrorCode.VIDEO_NOT_ATTACHED, "Video is not attached to a course")
    previous_course_id = video.course_id
    video.course_id = None
    db.commit()
    db.refresh(video)
    logger.info("Detached video %s from course %s", video.id, previous_course_id)
    return video


def get_video_or_404(db: Session, video_id: uuid.UUID) -> Video:
    video = db.get(Video, video_id)
    if not video:
        raise not_found(ErrorCode.VIDEO_NOT_FOUND, "Video not found")
    return video


def create_video(db: Session, payload: VideoCreateRequest) -> Video:
    if payload.course_id is not None:
        _lock_course(db, payload.course_id)
        _ensure_order_free(db, payload.course_id, payload.order)

    video = Video(
        course_id=payload.course_id,
        title=payload.title.strip(),
        order=payload.order,
        is_trailer=payload.is_trailer,
        source_url=payload.source_url.strip(),
        duration_seconds=payload.duration_seconds,
    )
    db.add(video)
    _flush(db)
    db.commit()
    db.refresh(video)
    return video


def update_video(db: Session, video_id: uuid.UUID, payload: VideoUpdateRequest) -> Video:
    video = get_video_or_404(db, video_id)
    if video.course_id is not None:
        _lock_course(db, video.course_id)
    video = _lock_video(db, video_id)

    if payload.order is not None and payload.order != video.order and video.course_id is not None:
        _ensure_order_free(db, video.course_id, payload.order, exclude_video_id=video.id)

    for field in ["title", "order", "is_trailer", "source_url", "duration_seconds"]:
        value = getattr(payload, field, None)
        if value is not None:
            setattr(video, field, value.strip() if isinstance(value, str) else value)
    _flush(db)
    db.commit()
    db.refresh(video)
    return video


def delete_video(db: Session, video_id: uuid.UUID) -> None:
    video = get_video_or_404(db, video_id)
    db.delete(video)
    db.commit()
