from pydantic import BaseModel, EmailStr, Field

from courseware.core.roles import Role


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=6, max_length=100)


class RegisterResponse(BaseModel):
    success: bool


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: str | None = None


class UserOut(BaseModel):
    id: str
    email: EmailStr
    username: str
    role: Role


class MeResponse(UserOut):
    created_at: str
    last_seen: str | None = None


class AuthResponse(BaseModel):
    user: UserOut
    access_token: str
    access_token_expires_in: int
    refresh_token: str


class RefreshResponse(BaseModel):
    access_token: str
    access_token_expires_in: int
    refresh_token: str


class LogoutResponse(BaseModel):
    success: bool
