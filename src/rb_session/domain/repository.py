"""Repository Protocol for work sessions and their entry logs.

Every add_* post is a single conditional statement: the total is bumped and
the entry appended only while the session is ACTIVE. They return False when
no ACTIVE session matched, and never partially apply.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_session.domain.models import SessionEntries, WorkSession


class SessionRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, session_id: str) -> WorkSession | None: ...

    async def get_active(self, db: AsyncSession, agent_id: str) -> WorkSession | None: ...

    async def insert(self, db: AsyncSession, session: WorkSession) -> WorkSession: ...

    async def end_session(
        self, db: AsyncSession, session_id: str, end_time: datetime
    ) -> WorkSession | None: ...

    async def list_history(
        self,
        db: AsyncSession,
        agent_id: str,
        from_date: datetime | None,
        to_date: datetime | None,
        offset: int,
        limit: int,
    ) -> tuple[list[WorkSession], int]: ...

    async def entries_for(
        self, db: AsyncSession, session_ids: list[str]
    ) -> dict[str, SessionEntries]: ...

    async def add_payment_entry(
        self,
        db: AsyncSession,
        session_id: str,
        kind: str,
        method: str,
        amount: int,
        payment_id: str | None,
    ) -> bool: ...

    async def add_delivery_entry(
        self, db: AsyncSession, session_id: str, delivery_id: str, type_: str, amount: int
    ) -> bool: ...

    async def add_expense_entry(
        self, db: AsyncSession, session_id: str, label: str, amount: int
    ) -> bool: ...

    async def add_credit_sale(self, db: AsyncSession, session_id: str, amount: int) -> bool: ...
