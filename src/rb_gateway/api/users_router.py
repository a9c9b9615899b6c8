"""User administration.

GET    /users         — paginated list (role, isActive, search)
GET    /users/me      — own account
GET    /users/{id}    — detail
POST   /users         — create (ADMIN)
PATCH  /users/{id}    — update names, role, status or password (ADMIN)
DELETE /users/{id}    — delete (ADMIN, never your own account)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.api.router import create_account, user_detail
from src.rb_gateway.auth.dependencies import get_current_user, require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_gateway.user.schemas import CreateUserRequest, UpdateUserRequest
from src.rb_gateway.user.service import UserService

router = APIRouter(prefix="/users", tags=["users"])
_service = UserService()
_admin = require_roles(Role.ADMIN)
_sales = require_roles(Role.ADMIN, Role.COMMERCIAL)


@router.get("", summary="List users")
async def list_users(
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    role: Role | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    search: str | None = Query(None),
) -> ApiResponse:
    page, limit = clamp_page(page), clamp_limit(limit)
    users, total = await _service.list_users(
        db,
        page_offset(page, limit),
        limit,
        role=role.value if role else None,
        is_active=is_active,
        search=search,
    )
    data = PageResponse(
        results=[user_detail(u).to_wire() for u in users], page=page, limit=limit, total=total
    )
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/me", summary="Own account")
async def get_me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    return success_response({"user": user_detail(current_user).to_wire()}, get_request_id(request))


@router.get("/{user_id}", summary="User detail")
async def get_user(
    user_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await _service.get_user(user_id, db)
    return success_response({"user": user_detail(user).to_wire()}, get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create user (ADMIN)")
async def create_user(
    request: Request,
    body: CreateUserRequest,
    _admin_user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await create_account(body, db)
    return success_response({"user": user_detail(user).to_wire()}, get_request_id(request))


@router.patch("/{user_id}", summary="Update user (ADMIN)")
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    request: Request,
    _admin_user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    fields = body.model_dump(exclude_unset=True)
    if body.role is not None:
        fields["role"] = body.role.value
    try:
        user = await _service.update_user(user_id, fields, db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(user)
    return success_response({"user": user_detail(user).to_wire()}, get_request_id(request))


@router.delete("/{user_id}", summary="Delete user (ADMIN)")
async def delete_user(
    user_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    try:
        await _service.delete_user(user_id, str(current_user.id), db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return success_response({"deleted": True}, get_request_id(request))
