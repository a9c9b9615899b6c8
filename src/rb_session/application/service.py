"""SessionService — work-session lifecycle, recap and history.

One ACTIVE session per agent: start pre-checks, and the partial unique index
on (agent_id) WHERE status = 'ACTIVE' catches a racing start, which is
reported as the same conflict. Ownership is checked here, not in the router.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.datetime_utils import ensure_utc, utc_now
from src.rb_common.errors import (
    ActiveSessionExistsError,
    InvalidEndTimeError,
    NoActiveSessionError,
    NoActiveSessionForExpenseError,
    SessionForbiddenError,
    SessionNotFoundError,
)
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset
from src.rb_session.application.ledger import SessionLedger
from src.rb_session.application.schemas import SessionProjection
from src.rb_session.domain.models import WorkSession
from src.rb_session.domain.repository import SessionRepositoryProtocol
from src.rb_session.infrastructure.persistence import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(
        self,
        repo: SessionRepositoryProtocol | None = None,
        ledger: SessionLedger | None = None,
    ) -> None:
        self._repo: SessionRepositoryProtocol = repo or SessionRepository()
        self._ledger = ledger or SessionLedger(self._repo)

    async def _project(self, db: AsyncSession, session: WorkSession) -> dict[str, Any]:
        entries = await self._repo.entries_for(db, [session.id])
        return SessionProjection.build(session, entries[session.id]).to_wire()

    async def start_session(
        self, db: AsyncSession, agent_id: str, start_time: datetime | None = None
    ) -> dict[str, Any]:
        if await self._repo.get_active(db, agent_id) is not None:
            raise ActiveSessionExistsError()
        session = WorkSession(
            id=generate_id(),
            agent_id=agent_id,
            start_time=ensure_utc(start_time) if start_time else utc_now(),
        )
        try:
            created = await self._repo.insert(db, session)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ActiveSessionExistsError() from None
        except Exception:
            await db.rollback()
            raise
        logger.info("Session %s started for agent %s", created.id, agent_id)
        return await self._project(db, created)

    async def end_session(
        self,
        db: AsyncSession,
        agent_id: str,
        session_id: str | None = None,
        end_time: datetime | None = None,
    ) -> dict[str, Any]:
        active = await self._repo.get_active(db, agent_id)
        if active is None:
            raise NoActiveSessionError()
        if session_id and session_id != active.id:
            raise NoActiveSessionError("No active session for this sessionId")
        ended_at = ensure_utc(end_time) if end_time else utc_now()
        if ended_at < active.start_time:
            raise InvalidEndTimeError()
        try:
            ended = await self._repo.end_session(db, active.id, ended_at)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if ended is None:
            # Ended concurrently by another request
            raise NoActiveSessionError()
        logger.info("Session %s ended for agent %s", ended.id, agent_id)
        projection = await self._project(db, ended)
        return {"endTime": projection["endTime"], "session": projection}

    async def get_active_session(self, db: AsyncSession, agent_id: str) -> dict[str, Any]:
        active = await self._repo.get_active(db, agent_id)
        return {"session": await self._project(db, active) if active else None}

    async def get_session_recap(
        self, db: AsyncSession, session_id: str, agent_id: str
    ) -> dict[str, Any]:
        session = await self._repo.get_by_id(db, session_id)
        if session is None:
            raise SessionNotFoundError()
        if session.agent_id != agent_id:
            raise SessionForbiddenError()
        return {"session": await self._project(db, session)}

    async def get_session_history(
        self,
        db: AsyncSession,
        agent_id: str,
        page: int | None = None,
        limit: int | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        sessions, total = await self._repo.list_history(
            db,
            agent_id,
            ensure_utc(from_date) if from_date else None,
            ensure_utc(to_date) if to_date else None,
            page_offset(page, limit),
            limit,
        )
        entries = await self._repo.entries_for(db, [s.id for s in sessions])
        return PageResponse(
            results=[SessionProjection.build(s, entries[s.id]).to_wire() for s in sessions],
            page=page,
            limit=limit,
            total=total,
        )

    async def add_expense(
        self, db: AsyncSession, agent_id: str, amount: int, label: str
    ) -> dict[str, Any]:
        """Post an expense to the caller's active session; returns the updated projection."""
        active = await self._repo.get_active(db, agent_id)
        if active is None:
            raise NoActiveSessionForExpenseError()
        try:
            await self._ledger.add_expense(db, active.id, amount, label)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        refreshed = await self._repo.get_by_id(db, active.id)
        return {"session": await self._project(db, refreshed or active)}
