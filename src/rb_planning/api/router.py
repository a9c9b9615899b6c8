"""rb_planning REST endpoints.

GET    /planning                 — paginated list (commercial, fromDate, toDate)
GET    /planning/by-date?date=   — plannings for one day
GET    /planning/{id}            — detail
POST   /planning                 — create
PUT    /planning/{id}            — update
PATCH  /planning/{id}            — update
DELETE /planning/{id}            — delete
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import require_roles
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_planning.application.schemas import CreatePlanningRequest, UpdatePlanningRequest
from src.rb_planning.application.service import PlanningService
from src.rb_planning.domain.models import PlanningFilter

router = APIRouter(prefix="/planning", tags=["planning"])

_service = PlanningService()
_staff = require_roles(Role.ADMIN, Role.COMMERCIAL, Role.DELIVERY)
_sales = require_roles(Role.ADMIN, Role.COMMERCIAL)


@router.get("")
async def list_plannings(
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    commercial: str | None = Query(None),
    from_date: date | None = Query(None, alias="fromDate"),
    to_date: date | None = Query(None, alias="toDate"),
) -> ApiResponse:
    flt = PlanningFilter(commercial=commercial, from_date=from_date, to_date=to_date)
    data = await _service.list_plannings(db, page, limit, flt)
    return success_response(data.model_dump(), get_request_id(request))


@router.get("/by-date")
async def plannings_by_date(
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    day: date = Query(..., alias="date"),
) -> ApiResponse:
    data = await _service.list_by_date(db, day)
    return success_response(data, get_request_id(request))


@router.get("/{planning_id}")
async def get_planning(
    planning_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_planning(db, planning_id)
    return success_response(data.to_wire(), get_request_id(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_planning(
    body: CreatePlanningRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(_sales)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.create_planning(db, body, str(current_user.id))
    return success_response(data.to_wire(), get_request_id(request))


@router.put("/{planning_id}")
@router.patch("/{planning_id}")
async def update_planning(
    planning_id: str,
    body: UpdatePlanningRequest,
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_planning(db, planning_id, body)
    return success_response(data.to_wire(), get_request_id(request))


@router.delete("/{planning_id}")
async def delete_planning(
    planning_id: str,
    request: Request,
    _user: Annotated[UserModel, Depends(_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_planning(db, planning_id)
    return success_response({"deleted": True}, get_request_id(request))
