"""rb_client REST endpoints.

GET    /clients            — paginated list (creator-scoped for non-admins)
GET    /clients/{id}       — detail
POST   /clients            — create
PATCH  /clients/{id}       — update
DELETE /clients/{id}       — delete
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_client.application.schemas import CreateClientRequest, UpdateClientRequest
from src.rb_client.application.service import ClientApplicationService
from src.rb_client.domain.models import ClientFilter
from src.rb_common.database import get_db_session
from src.rb_common.enums import ClientType, Role, Segment
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import is_admin, require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/clients", tags=["clients"])

_service = ClientApplicationService()
_staff = require_roles(Role.ADMIN, Role.COMMERCIAL, Role.DELIVERY)
_sales = require_roles(Role.ADMIN, Role.COMMERCIAL)


@router.get("")
async def list_clients(
    request: Request,
    current_user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    search: str | None = Query(None, alias="q"),
    client_type: ClientType | None = Query(None, alias="type"),
    segment: Segment | None = Query(None),
    circuit_id: str | None = Query(None, alias="circuit"),
    archived: bool | None = Query(None),
    sort: str | None = Query(None),
) -> ApiResponse:
    flt = ClientFilter(
        search=search,
        type=client_type.value if client_type else None,
        segment=segment.value if segment else None,
        circuit_id=circuit_id,
        archived=archived,
        sort=sort,
    )
    data = await _service.list_clients(
        db, str(current_user.id), is_admin(current_user), page, limit, flt
    )
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/{client_id}")
async def get_client(
    client_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_client(db, client_id, str(current_user.id), is_admin(current_user))
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
    body: CreateClientRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_client(db, body, str(current_user.id))
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{client_id}")
async def update_client(
    client_id: str,
    body: UpdateClientRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_client(
        db, client_id, body, str(current_user.id), is_admin(current_user)
    )
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_client(db, client_id, str(current_user.id), is_admin(current_user))
    return success_response({"deleted": True}, get_request_id(request))
