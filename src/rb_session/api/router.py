"""rb_session REST endpoints. Every route acts on the caller's own sessions.

POST /work-sessions/start      — start a session
POST /work-sessions/end        — end the active session
GET  /work-sessions/active     — active session or null
GET  /work-sessions/history    — paginated history
GET  /work-sessions/{id}       — recap (owner only)
POST /work-sessions/expenses   — add an expense to the active session
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.response import ApiResponse, success_response
from src.rb_gateway.auth.dependencies import get_current_user
from src.rb_gateway.middleware.request_log import get_request_id
from src.rb_gateway.user.db_models import UserModel
from src.rb_session.application.schemas import (
    AddExpenseRequest,
    EndSessionRequest,
    StartSessionRequest,
)
from src.rb_session.application.service import SessionService

router = APIRouter(prefix="/work-sessions", tags=["work-sessions"])

_service = SessionService()


@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_session(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: StartSessionRequest | None = None,
) -> ApiResponse:
    session = await _service.start_session(
        db, str(current_user.id), body.start_time if body else None
    )
    return success_response({"session": session}, get_request_id(request))


@router.post("/end")
async def end_session(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: EndSessionRequest | None = None,
) -> ApiResponse:
    data = await _service.end_session(
        db,
        str(current_user.id),
        body.session_id if body else None,
        body.end_time if body else None,
    )
    return success_response(data, get_request_id(request))


@router.get("/active")
async def get_active_session(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_active_session(db, str(current_user.id))
    return success_response(data, get_request_id(request))


@router.get("/history")
async def get_session_history(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1),
    limit: int = Query(20),
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
) -> ApiResponse:
    data = await _service.get_session_history(
        db, str(current_user.id), page, limit, from_date, to_date
    )
    return success_response(data.model_dump(), get_request_id(request))


@router.post("/expenses", status_code=status.HTTP_201_CREATED)
async def add_expense(
    body: AddExpenseRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.add_expense(db, str(current_user.id), body.amount, body.label)
    return success_response(data, get_request_id(request))


@router.get("/{session_id}")
async def get_session_recap(
    session_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_session_recap(db, session_id, str(current_user.id))
    return success_response(data, get_request_id(request))
