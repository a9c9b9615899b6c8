"""Pydantic request/response schemas for rb_gateway."""

from datetime import datetime

from pydantic import EmailStr, Field

from src.rb_common.enums import Role
from src.rb_common.schemas import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class CreateUserRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: Role = Role.COMMERCIAL


class UserInfo(CamelModel):
    """Minimal user info embedded in responses."""

    id: str
    name: str
    email: str
    role: str


class LoginResponse(CamelModel):
    user: UserInfo
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class RefreshResponse(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int


class UpdateUserRequest(CamelModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: Role | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=6, max_length=128)


class UserDetail(CamelModel):
    """Full user record for the admin screens. Never carries the hash."""

    id: str
    email: str
    name: str
    first_name: str | None
    last_name: str | None
    role: str
    is_active: bool
    created_at: datetime | None
