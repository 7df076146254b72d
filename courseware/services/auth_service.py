import logging
import uuid
from datetime import timedelta

import jwt
from sqlalchemy import delete as sql_delete
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from courseware.core.config import get_settings
from courseware.core.error_codes import ErrorCode
from courseware.core.errors import conflict, unauthenticated
from courseware.core.security import (
    ACCESS_TOKEN_TYPE,
    as_utc,
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    hash_password,
    hash_text,
    now_utc,
    verify_password,
)
from courseware.db.errors import StorageError, classify_integrity_error
from courseware.models import RefreshToken, User
from courseware.schemas.auth import AuthResponse, RefreshResponse, UserOut

logger = logging.getLogger(__name__)


def user_out(user: User) -> UserOut:
    return UserOut(id=str(user.id), email=user.email, username=user.username, role=user.role)


def issue_access_token(user: User) -> str:
    return create_access_token(str(user.id), email=user.email, role=user.role)


def issue_refresh_token(db: Session, user: User) -> str:
    """Persist a new refresh token; the caller commits."""
    settings = get_settings()
    refresh_token = generate_refresh_token()
    db.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_text(refresh_token),
            expires_at=now_utc() + timedelta(seconds=settings.refresh_token_expire_seconds),
        )
    )
    return refresh_token


def register_user(db: Session, *, email: str, username: str, password: str) -> User:
    email = email.lower().strip()
    username = username.strip()

    existing = db.execute(
        select(User).where(or_(User.email == email, User.username == username), User.deleted_at.is_(None))
    ).scalars().first()
    if existing:
        raise conflict(ErrorCode.USER_EXISTS, "User with this email or username already exists")

    user = User(email=email, username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Soft-deleted rows still hold their email and username.
        db.rollback()
        if classify_integrity_error(exc) is StorageError.UNIQUE_VIOLATION:
            raise conflict(ErrorCode.USER_EXISTS, "User with this email or username already exists") from exc
        raise
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def login(db: Session, *, email: str, password: str) -> AuthResponse:
    email = email.lower().strip()
    user = db.execute(select(User).where(User.email == email)).scalars().first()
    # Soft-deleted accounts are indistinguishable from unknown ones.
    if not user or user.is_deleted or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise unauthenticated(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")

    refresh_token = issue_refresh_token(db, user)
    user.is_online = True
    user.last_seen = now_utc()
    db.commit()
    db.refresh(user)
    logger.info("User %s logged in", user.id)

    return AuthResponse(
        user=user_out(user),
        access_token=issue_access_token(user),
        access_token_expires_in=get_settings().access_token_expire_seconds,
        refresh_token=refresh_token,
    )


def _find_refresh_token(db: Session, token_hash: str) -> RefreshToken | None:
    return db.execute(select(RefreshToken).where(RefreshToken.token_hash == token_hash)).scalars().first()


def rotate_refresh_token(db: Session, refresh_token: str) -> RefreshResponse:
    """Consume a refresh token and hand out a new credential pair.

    The stored row is removed with a single DELETE; when two requests race on
    the same token only the one whose DELETE removed the row proceeds.
    """
    token_hash = hash_text(refresh_token)
    row = _find_refresh_token(db, token_hash)
    if not row:
        raise unauthenticated(ErrorCode.TOKEN_EXPIRED, "Refresh token expired or not found")
    user_id, expires_at = row.user_id, row.expires_at

    consumed = db.execute(sql_delete(RefreshToken).where(RefreshToken.token_hash == token_hash))
    if consumed.rowcount != 1:
        db.rollback()
        raise unauthenticated(ErrorCode.TOKEN_EXPIRED, "Refresh token expired or not found")

    if as_utc(expires_at) < now_utc():
        db.commit()
        raise unauthenticated(ErrorCode.TOKEN_EXPIRED, "Refresh token expired or not found")

    user = db.get(User, user_id)
    if not user or user.is_deleted:
        db.commit()
        raise unauthenticated(ErrorCode.INVALID_USER, "User not found or deleted")

    new_refresh_token = issue_refresh_token(db, user)
    user.last_seen = now_utc()
    db.commit()

    return RefreshResponse(
        access_token=issue_access_token(user),
        access_token_expires_in=get_settings().access_token_expire_seconds,
        refresh_token=new_refresh_token,
    )


def logout(db: Session, refresh_token: str | None) -> None:
    """Revoke a refresh token and mark its owner offline.

    Unknown or already revoked tokens are not an error.
    """
    if refresh_token:
        token_hash = hash_text(refresh_token)
        row = _find_refresh_token(db, token_hash)
        if row:
            user = db.get(User, row.user_id)
            if user:
                user.is_online = False
                user.last_seen = now_utc()
            db.execute(sql_delete(RefreshToken).where(RefreshToken.token_hash == token_hash))
    db.commit()


def revoke_all_refresh_tokens(db: Session, user_id: uuid.UUID) -> None:
    db.execute(sql_delete(RefreshToken).where(RefreshToken.user_id == user_id))


def resolve_access_token(db: Session, token: str) -> User:
    """Verify an access token and load the live user behind it."""
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise unauthenticated(ErrorCode.INVALID_TOKEN, "Invalid or expired access token") from exc

    subject = payload.get("sub")
    if payload.get("type") != ACCESS_TOKEN_TYPE or not subject:
        raise unauthenticated(ErrorCode.INVALID_TOKEN, "Invalid access token")
    try:
        user_id = uuid.UUID(subject)
    except ValueError as exc:
        raise unauthenticated(ErrorCode.INVALID_TOKEN, "Invalid access token") from exc

    user = db.get(User, user_id)
    if not user or user.is_deleted:
        raise unauthenticated(ErrorCode.INVALID_USER, "User not found or deleted")
    return user
