"""Enrollment ledger: who is enrolled in which course, and by whom.

Every mutation locks the course row before its existence checks and commits
check and write together. The ``uq_enrollment_user_course`` constraint backs
that up: a unique violation on insert is reported as ALREADY_ENROLLED.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from courseware.core.error_codes import ErrorCode
from courseware.core.errors import ApiError, ErrorKind, conflict, forbidden, invalid, not_found
from courseware.db.errors import StorageError, classify_integrity_error
from courseware.models import Course, Enrollment, User

logger = logging.getLogger(__name__)


def _lock_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.execute(select(Course).where(Course.id == course_id).with_for_update()).scalars().first()
    if not course:
        raise not_found(ErrorCode.COURSE_NOT_FOUND, "Course not found")
    return course


def find_enrollment(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> Enrollment | None:
    return db.execute(
        select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
    ).scalars().first()


def _insert_enrollment(db: Session, *, user_id: uuid.UUID, course_id: uuid.UUID, enrolled_by: uuid.UUID | None) -> Enrollment:
    if find_enrollment(db, user_id, course_id):
        raise conflict(ErrorCode.ALREADY_ENROLLED, "User already enrolled")

    enrollment = Enrollment(user_id=user_id, course_id=course_id, enrolled_by=enrolled_by)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if classify_integrity_error(exc) is StorageError.UNIQUE_VIOLATION:
            raise conflict(ErrorCode.ALREADY_ENROLLED, "User already enrolled") from exc
        raise ApiError(ErrorKind.INTERNAL, ErrorCode.DATABASE_ERROR, "Failed to store enrollment") from exc
    db.refresh(enrollment)
    return enrollment


def enroll(db: Session, admin_id: uuid.UUID, user_id: uuid.UUID, course_id: uuid.UUID) -> Enrollment:
    """Enroll ``user_id`` on behalf of an admin."""
    course = _lock_course(db, course_id)
    if not course.is_published:
        raise invalid(ErrorCode.COURSE_NOT_PUBLISHED, "Cannot enroll in unpublished course")

    user = db.get(User, user_id)
    if not user or user.is_deleted:
        raise not_found(ErrorCode.USER_NOT_FOUND, "User not found")

    enrollment = _insert_enrollment(db, user_id=user_id, course_id=course_id, enrolled_by=admin_id)
    logger.info("User %s enrolled in course %s by admin %s", user_id, course_id, admin_id)
    return enrollment


def self_join(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> Enrollment:
    """Let a user join a published public course on their own."""
    course = _lock_course(db, course_id)
    if not course.is_published:
        raise forbidden(ErrorCode.COURSE_NOT_PUBLISHED, "Course is not published")
    if not course.is_public:
        raise forbidden(ErrorCode.COURSE_NOT_PUBLIC, "Course is not public")

    enrollment = _insert_enrollment(db, user_id=user_id, course_id=course_id, enrolled_by=None)
    logger.info("User %s joined course %s", user_id, course_id)
    return enrollment


def unenroll(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> None:
    """Remove an enrollment. A missing record is an error, also on repeat calls.

    An unknown course has no enrollments, so it reports ENROLLMENT_NOT_FOUND too.
    """
    db.execute(select(Course.id).where(Course.id == course_id).with_for_update())
    enrollment = find_enrollment(db, user_id, course_id)
    if not enrollment:
        raise not_found(ErrorCode.ENROLLMENT_NOT_FOUND, "Enrollment not found")
    db.delete(enrollment)
    db.commit()
    logger.info("User %s unenrolled from course %s", user_id, course_id)


def has_access(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> bool:
    course = db.get(Course, course_id)
    if not course or not course.is_published:
        return False
    if course.is_public:
        return True
    return find_enrollment(db, user_id, course_id) is not None


def list_course_enrollments(db: Session, course_id: uuid.UUID) -> list[tuple[Enrollment, User]]:
    if not db.get(Course, course_id):
        raise not_found(ErrorCode.COURSE_NOT_FOUND, "Course not found")
    stmt = (
        select(Enrollment, User)
        .join(User, Enrollment.user_id == User.id)
        .where(Enrollment.course_id == course_id)
        .order_by(Enrollment.created_at.desc())
    )
    return [(enrollment, user) for enrollment, user in db.execute(stmt).all()]


def list_user_courses(db: Session, user_id: uuid.UUID) -> list[tuple[Enrollment, Course]]:
    stmt = (
        select(Enrollment, Course)
        .join(Course, Enrollment.course_id == Course.id)
        .where(Enrollment.user_id == user_id)
        .order_by(Enrollment.created_at.desc())
    )
    return [(enrollment, course) for enrollment, course in db.execute(stmt).all()]
