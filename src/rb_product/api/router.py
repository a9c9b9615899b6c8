"""rb_product REST endpoints. Reads for every role; writes are ADMIN only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import get_current_user, require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_product.application.schemas import (
    CreateProductRequest,
    SetStockRequest,
    UpdateProductRequest,
)
from src.rb_product.application.service import ProductApplicationService
from src.rb_product.domain.models import ProductFilter

router = APIRouter(prefix="/products", tags=["products"])

_service = ProductApplicationService()
_admin = require_roles(Role.ADMIN)


@router.get("")
async def list_products(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    search: str | None = Query(None),
    category: str | None = Query(None),
    active: bool | None = Query(None),
) -> ApiResponse:
    flt = ProductFilter(search=search, category=category, active=active)
    data = await _service.list_products(db, page, limit, flt)
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_product(db, product_id)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: CreateProductRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_product(db, body)
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_product(db, product_id, body)
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{product_id}/stock")
async def set_stock(
    product_id: str,
    body: SetStockRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.set_stock(db, product_id, body.quantity)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("/{product_id}/deactivate")
async def deactivate_product(
    product_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.deactivate_product(db, product_id)
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_product(db, product_id)
    return success_response({"deleted": True}, get_request_id(request))


categories_router = APIRouter(prefix="/categories", tags=["products"])


@categories_router.get("")
async def list_categories(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    results = await _service.list_categories(db)
    return success_response({"results": results}, get_request_id(request))
