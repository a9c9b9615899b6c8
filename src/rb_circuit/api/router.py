"""rb_circuit REST endpoints.

GET    /circuits                 — paginated list (creator-scoped for non-admins)
GET    /circuits/{id}/clients    — clients attached to the circuit
GET    /circuits/{id}            — detail
POST   /circuits                 — create
PATCH  /circuits/{id}            — update
DELETE /circuits/{id}            — delete (ADMIN)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.application.schemas import CreateCircuitRequest, UpdateCircuitRequest
from src.rb_circuit.application.service import CircuitService
from src.rb_circuit.domain.models import CircuitFilter
from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import is_admin, require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/circuits", tags=["circuits"])

_service = CircuitService()
_staff = require_roles(Role.ADMIN, Role.COMMERCIAL, Role.DELIVERY)
_sales = require_roles(Role.ADMIN, Role.COMMERCIAL)
_admin = require_roles(Role.ADMIN)


@router.get("")
async def list_circuits(
    request: Request,
    current_user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    search: str | None = Query(None),
    zone: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
) -> ApiResponse:
    flt = CircuitFilter(search=search, zone=zone, is_active=is_active)
    data = await _service.list_circuits(
        db, str(current_user.id), is_admin(current_user), page, limit, flt
    )
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/{circuit_id}/clients")
async def list_circuit_clients(
    circuit_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.list_circuit_clients(
        db, circuit_id, str(current_user.id), is_admin(current_user)
    )
    return success_response(data, get_request_id(request))


@router.get("/{circuit_id}")
async def get_circuit(
    circuit_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_circuit(db, circuit_id, str(current_user.id), is_admin(current_user))
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_circuit(
    body: CreateCircuitRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_circuit(db, body, str(current_user.id))
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{circuit_id}")
async def update_circuit(
    circuit_id: str,
    body: UpdateCircuitRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_circuit(
        db, circuit_id, body, str(current_user.id), is_admin(current_user)
    )
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{circuit_id}")
async def delete_circuit(
    circuit_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_circuit(db, circuit_id)
    return success_response({"deleted": True}, get_request_id(request))
