"""rb_delivery REST endpoints.

GET    /deliveries                      — paginated list
GET    /deliveries/by-date?date=        — all deliveries planned that day
GET    /deliveries/by-client/{id}       — all deliveries for a client
GET    /deliveries/{id}                 — detail
POST   /deliveries                      — create (debits the client)
PATCH  /deliveries/{id}                 — update scheduling fields
PATCH  /deliveries/{id}/status          — status transition
DELETE /deliveries/{id}                 — delete (ADMIN)
"""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.response import ApiResponse, success_response
from src.rb_delivery.application.schemas import (
    CreateDeliveryRequest,
    UpdateDeliveryRequest,
    UpdateStatusRequest,
)
from src.rb_delivery.application.service import DeliveryService
from src.rb_delivery.domain.models import DeliveryFilter
from src.rb_delivery.domain.status import parse_status
from src.rb_gateway.auth.dependencies import require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/deliveries", tags=["deliveries"])

_service = DeliveryService()
_staff = require_roles(Role.ADMIN, Role.COMMERCIAL, Role.DELIVERY)
_drivers = require_roles(Role.ADMIN, Role.DELIVERY)
_admin = require_roles(Role.ADMIN)


@router.get("")
async def list_deliveries(
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    client_id: str | None = Query(None, alias="client"),
    circuit_id: str | None = Query(None, alias="circuit"),
    status_: str | None = Query(None, alias="status"),
    day: date | None = Query(None, alias="date"),
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
) -> ApiResponse:
    flt = DeliveryFilter(
        client_id=client_id,
        circuit_id=circuit_id,
        status=parse_status(status_).value if status_ else None,
        from_date=from_date,
        to_date=to_date,
    )
    data = await _service.list_deliveries(db, page, limit, flt, day)
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/by-date")
async def deliveries_by_date(
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    day: date = Query(..., alias="date"),
) -> ApiResponse:
    data = await _service.list_by_date(db, day)
    return success_response(data, get_request_id(request))


@router.get("/by-client/{client_id}")
async def deliveries_by_client(
    client_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.list_by_client(db, client_id)
    return success_response(data, get_request_id(request))


@router.get("/{delivery_id}")
async def get_delivery(
    delivery_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_delivery(db, delivery_id)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_delivery(
    body: CreateDeliveryRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_drivers)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_delivery(db, body, str(current_user.id))
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{delivery_id}")
async def update_delivery(
    delivery_id: str,
    body: UpdateDeliveryRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_drivers)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_delivery(db, delivery_id, body)
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{delivery_id}/status")
async def update_status(
    delivery_id: str,
    body: UpdateStatusRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_drivers)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_status(
        db, delivery_id, body.status, body.completed_at, body.delivery_date, body.proof_photo
    )
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{delivery_id}")
async def delete_delivery(
    delivery_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_delivery(db, delivery_id)
    return success_response({"deleted": True}, get_request_id(request))
