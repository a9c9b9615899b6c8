"""rb_payment REST endpoints.

GET    /payments                        — paginated list with summary
GET    /payments/by-client/{id}         — all payments for a client
GET    /payments/by-date-range          — payments between fromDate and toDate
GET    /payments/{id}                   — detail
POST   /payments                        — record a payment (credits the client)
PATCH  /payments/{id}                   — update / cancel
DELETE /payments/{id}                   — delete (ADMIN)
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import PaymentStatus, Role
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_payment.application.schemas import CreatePaymentRequest, UpdatePaymentRequest
from src.rb_payment.application.service import PaymentService
from src.rb_payment.domain.models import PaymentFilter

router = APIRouter(prefix="/payments", tags=["payments"])

_service = PaymentService()
_sales = require_roles(Role.ADMIN, Role.COMMERCIAL)
_admin = require_roles(Role.ADMIN)


@router.get("")
async def list_payments(
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    client_id: str | None = Query(None, alias="client"),
    status_: PaymentStatus | None = Query(None, alias="status"),
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
) -> ApiResponse:
    flt = PaymentFilter(
        client_id=client_id,
        status=status_.value if status_ else None,
        from_date=from_date,
        to_date=to_date,
    )
    data = await _service.list_payments(db, page, limit, flt)
    return success_response(data, get_request_id(request))


@router.get("/by-client/{client_id}")
async def payments_by_client(
    client_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.list_by_client(db, client_id)
    return success_response(data, get_request_id(request))


@router.get("/by-date-range")
async def payments_by_date_range(
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
) -> ApiResponse:
    data = await _service.list_by_date_range(db, from_date, to_date)
    return success_response(data, get_request_id(request))


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_payment(db, payment_id)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: CreatePaymentRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_payment(db, body, str(current_user.id))
    return success_response(data.to_wire(), get_request_id(request))


@router.patch("/{payment_id}")
async def update_payment(
    payment_id: str,
    body: UpdatePaymentRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_payment(db, payment_id, body)
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{payment_id}")
async def delete_payment(
    payment_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_payment(db, payment_id)
    return success_response({"deleted": True}, get_request_id(request))
