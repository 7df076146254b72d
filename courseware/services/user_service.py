import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from courseware.core.error_codes import ErrorCode
from courseware.core.errors import not_found
from courseware.core.security import now_utc
from courseware.models import Enrollment, User
from courseware.services.auth_service import revoke_all_refresh_tokens

logger = logging.getLogger(__name__)


def get_live_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if not user or user.is_deleted:
        raise not_found(ErrorCode.USER_NOT_FOUND, "User not found")
    return user


def list_users(db: Session) -> list[tuple[User, int]]:
    """Live users (newest first) paired with their enrollment count."""
    users = db.execute(
        select(User).where(User.deleted_at.is_(None)).order_by(User.created_at.desc())
    ).scalars().all()
    if not users:
        return []
    counts = db.execute(
        select(Enrollment.user_id, func.count(Enrollment.id).label("cnt"))
        .where(Enrollment.user_id.in_([user.id for user in users]))
        .group_by(Enrollment.user_id)
    ).all()
    count_map = {row.user_id: row.cnt for row in counts}
    return [(user, count_map.get(user.id, 0)) for user in users]


def soft_delete_user(db: Session, user_id: uuid.UUID) -> None:
    """Mark the account deleted and revoke its refresh tokens; the row stays."""
    user = get_live_user_or_404(db, user_id)
    user.deleted_at = now_utc()
    user.is_online = False
    revoke_all_refresh_tokens(db, user.id)
    db.commit()
    logger.info("Soft-deleted user %s", user.id)
