from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from courseware.api.deps import CurrentUser, clear_access_cookie, set_access_cookie
from courseware.db.session import get_db
from courseware.schemas.auth import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from courseware.services import auth_service

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    auth_service.register_user(db, email=payload.email, username=payload.username, password=payload.password)
    return RegisterResponse(success=True)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> AuthResponse:
    result = auth_service.login(db, email=payload.email, password=payload.password)
    set_access_cookie(response, result.access_token)
    return result


@router.post("/refresh", response_model=RefreshResponse)
def refresh(payload: RefreshRequest, response: Response, db: Session = Depends(get_db)) -> RefreshResponse:
    result = auth_service.rotate_refresh_token(db, payload.refresh_token)
    set_access_cookie(response, result.access_token)
    return result


@router.post("/logout", response_model=LogoutResponse)
def logout(payload: LogoutRequest, response: Response, db: Session = Depends(get_db)) -> LogoutResponse:
    auth_service.logout(db, payload.refresh_token)
    clear_access_cookie(response)
    return LogoutResponse(success=True)


@router.get("/me", response_model=MeResponse)
def me(current_user: CurrentUser) -> MeResponse:
    return MeResponse(
        **auth_service.user_out(current_user).model_dump(),
        created_at=current_user.created_at.isoformat(),
        last_seen=current_user.last_seen.isoformat() if current_user.last_seen else None,
    )
