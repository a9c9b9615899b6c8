"""Repository Protocol for planned routes.

One planning per (date, commercial) is enforced by a partial unique index;
insert and update_fields surface a violation as IntegrityError.
"""

from datetime import date
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_planning.domain.models import Planning, PlanningFilter


class PlanningRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, planning_id: str) -> Planning | None: ...

    async def find_for_commercial(
        self, db: AsyncSession, day: date, commercial: str
    ) -> Planning | None: ...

    async def insert(self, db: AsyncSession, planning: Planning) -> Planning: ...

    async def update_fields(
        self, db: AsyncSession, planning_id: str, fields: dict[str, Any]
    ) -> Planning | None: ...

    async def delete(self, db: AsyncSession, planning_id: str) -> bool: ...

    async def list_plannings(
        self,
        db: AsyncSession,
        flt: PlanningFilter,
        offset: int | None,
        limit: int | None,
        newest_first: bool = True,
    ) -> tuple[list[Planning], int]: ...
