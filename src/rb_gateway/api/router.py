"""Auth API router: register, login, refresh, logout, me.

All endpoints return the ApiResponse envelope. request_id is read from
request.state (injected by RequestLogMiddleware).
"""

import logging
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.redis_client import get_redis
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import get_current_user, require_roles
from src.rb_gateway.auth.jwt_handler import ACCESS_EXPIRE
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_gateway.user.schemas import (
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshRequest,
    RefreshResponse,
    UserDetail,
    UserInfo,
)
from src.rb_gateway.user.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

_EXPIRES_IN = int(ACCESS_EXPIRE.total_seconds())


def user_info(user: UserModel) -> UserInfo:
    return UserInfo(id=str(user.id), name=user.display_name, email=user.email, role=user.role)


def user_detail(user: UserModel) -> UserDetail:
    return UserDetail(
        id=str(user.id),
        email=user.email,
        name=user.display_name,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )


async def create_account(body: CreateUserRequest, db: AsyncSession) -> UserModel:
    """Shared by POST /auth/register and POST /users."""
    try:
        user = await _service.create_user(
            body.email,
            body.password,
            body.role.value,
            db,
            first_name=body.first_name,
            last_name=body.last_name,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(user)
    logger.info("Account %s created with role %s", user.id, user.role)
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register account (ADMIN)")
async def register(
    request: Request,
    body: CreateUserRequest,
    _admin: Annotated[UserModel, Depends(require_roles(Role.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await create_account(body, db)
    return success_response({"user": user_info(user).to_wire()}, get_request_id(request))


@router.post("/login", status_code=status.HTTP_200_OK, summary="Agent login")
async def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(
        body.email, body.password, db, redis
    )
    data = LoginResponse(
        user=user_info(user),
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_EXPIRES_IN,
    )
    return success_response(data.to_wire(), get_request_id(request))


@router.post("/refresh", status_code=status.HTTP_200_OK, summary="Rotate refresh token")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> ApiResponse:
    access, new_refresh = await _service.refresh(body.refresh_token, db, redis)
    data = RefreshResponse(access_token=access, refresh_token=new_refresh, expires_in=_EXPIRES_IN)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("/logout", status_code=status.HTTP_200_OK, summary="Revoke refresh token")
async def logout(
    request: Request,
    body: LogoutRequest,
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> ApiResponse:
    await _service.logout(body.refresh_token, redis)
    return success_response({}, get_request_id(request))


@router.get("/me", summary="Current user")
async def me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    return success_response({"user": user_info(current_user).to_wire()}, get_request_id(request))
