"""Request identity.

Access tokens come from ``Authorization: Bearer`` or the ``access_token``
cookie. With sliding sessions enabled every successfully authenticated request
gets a fresh access token; :func:`attach_refreshed_token` puts it on the
response whatever the outcome of the endpoint, error responses included.
"""

from typing import Annotated

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from courseware.core.config import get_settings
from courseware.core.error_codes import ErrorCode
from courseware.core.errors import forbidden, unauthenticated
from courseware.core.roles import is_admin_tier
from courseware.db.session import get_db
from courseware.models import User
from courseware.services.auth_service import issue_access_token, resolve_access_token

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESHED_TOKEN_HEADER = "X-Access-Token"


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def set_access_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        token,
        max_age=settings.access_token_expire_seconds,
        httponly=True,
        secure=settings.app_env == "production",
        samesite="lax",
    )


def clear_access_cookie(response: Response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE)


def attach_refreshed_token(request: Request, response: Response) -> None:
    token = getattr(request.state, "refreshed_access_token", None)
    if token is None:
        return
    response.headers[REFRESHED_TOKEN_HEADER] = token
    response.headers["X-Token-Refreshed"] = "true"
    set_access_cookie(response, token)


def _slide_session(request: Request, user: User) -> None:
    if not get_settings().sliding_session_enabled:
        return
    request.state.refreshed_access_token = issue_access_token(user)


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """No token means guest; a token that fails verification is rejected."""
    token = _extract_token(request, credentials)
    if token is None:
        return None
    user = resolve_access_token(db, token)
    _slide_session(request, user)
    return user


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise unauthenticated(ErrorCode.UNAUTHORIZED, "Missing authorization token")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not is_admin_tier(user.role):
        raise forbidden(ErrorCode.ADMIN_REQUIRED, "Admin privileges required")
    return user


OptionalUser = Annotated[User | None, Depends(get_optional_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
