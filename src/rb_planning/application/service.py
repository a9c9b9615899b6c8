"""PlanningService — planned routes per day.

A commercial has at most one planning per calendar day. The service
pre-checks and the partial unique index on (plan_date, commercial) catches a
concurrent insert, which is reported as the same conflict.
"""

import logging
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.domain.repository import CircuitRepositoryProtocol
from src.rb_circuit.infrastructure.persistence import CircuitRepository
from src.rb_common.errors import CircuitNotFoundError, PlanningExistsError, PlanningNotFoundError
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset
from src.rb_planning.application.schemas import (
    CreatePlanningRequest,
    PlanningResponse,
    UpdatePlanningRequest,
)
from src.rb_planning.domain.models import Planning, PlanningFilter
from src.rb_planning.domain.repository import PlanningRepositoryProtocol
from src.rb_planning.infrastructure.persistence import PlanningRepository

logger = logging.getLogger(__name__)


class PlanningService:
    def __init__(
        self,
        repo: PlanningRepositoryProtocol | None = None,
        circuit_repo: CircuitRepositoryProtocol | None = None,
    ) -> None:
        self._repo: PlanningRepositoryProtocol = repo or PlanningRepository()
        self._circuits: CircuitRepositoryProtocol = circuit_repo or CircuitRepository()

    async def _get(self, db: AsyncSession, planning_id: str) -> Planning:
        planning = await self._repo.get_by_id(db, planning_id)
        if planning is None:
            raise PlanningNotFoundError(planning_id)
        return planning

    async def _check_circuit(self, db: AsyncSession, circuit_id: str | None) -> None:
        if circuit_id and await self._circuits.get_by_id(db, circuit_id) is None:
            raise CircuitNotFoundError(circuit_id)

    async def _check_free(
        self, db: AsyncSession, day: date, commercial: str | None, planning_id: str | None = None
    ) -> None:
        if not commercial:
            return
        existing = await self._repo.find_for_commercial(db, day, commercial)
        if existing is not None and existing.id != planning_id:
            raise PlanningExistsError()

    async def get_planning(self, db: AsyncSession, planning_id: str) -> PlanningResponse:
        return PlanningResponse.from_domain(await self._get(db, planning_id))

    async def list_plannings(
        self, db: AsyncSession, page: int, limit: int, flt: PlanningFilter
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        items, total = await self._repo.list_plannings(db, flt, page_offset(page, limit), limit)
        return PageResponse(
            results=[PlanningResponse.from_domain(p).to_wire() for p in items],
            page=page,
            limit=limit,
            total=total,
        )

    async def list_by_date(self, db: AsyncSession, day: date) -> list[dict[str, Any]]:
        items, _ = await self._repo.list_plannings(
            db, PlanningFilter(from_date=day, to_date=day), None, None, newest_first=False
        )
        return [PlanningResponse.from_domain(p).to_wire() for p in items]

    async def create_planning(
        self, db: AsyncSession, req: CreatePlanningRequest, user_id: str
    ) -> PlanningResponse:
        circuit_id = req.circuit_id or None
        commercial = req.commercial or None
        await self._check_circuit(db, circuit_id)
        await self._check_free(db, req.plan_date, commercial)
        planning = Planning(
            id=generate_id(),
            date=req.plan_date,
            circuit_id=circuit_id,
            title=req.title,
            time=req.time or None,
            status=req.status.value,
            stops=[s.to_domain() for s in req.stops],
            commercial=commercial,
            client_ids=list(req.clients),
            notes=req.notes,
            created_by=user_id,
        )
        try:
            await self._repo.insert(db, planning)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise PlanningExistsError() from None
        except Exception:
            await db.rollback()
            raise
        logger.info("Planning %s created for %s", planning.id, planning.date.isoformat())
        return PlanningResponse.from_domain(await self._get(db, planning.id))

    async def update_planning(
        self, db: AsyncSession, planning_id: str, req: UpdatePlanningRequest
    ) -> PlanningResponse:
        current = await self._get(db, planning_id)
        raw = req.model_dump(exclude_unset=True)
        fields: dict[str, Any] = {}
        for key in ("circuit_id", "title", "time", "commercial", "notes"):
            if key in raw:
                fields[key] = raw[key] or None
        if raw.get("plan_date") is not None:
            fields["date"] = raw["plan_date"]
        if req.status is not None:
            fields["status"] = req.status.value
        if req.stops is not None:
            fields["stops"] = [s.to_domain() for s in req.stops]
        if req.clients is not None:
            fields["client_ids"] = list(req.clients)

        await self._check_circuit(db, fields.get("circuit_id"))
        await self._check_free(
            db,
            fields.get("date", current.date),
            fields.get("commercial", current.commercial),
            planning_id,
        )
        try:
            updated = await self._repo.update_fields(db, planning_id, fields)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise PlanningExistsError() from None
        except Exception:
            await db.rollback()
            raise
        if updated is None:
            raise PlanningNotFoundError(planning_id)
        return PlanningResponse.from_domain(updated)

    async def delete_planning(self, db: AsyncSession, planning_id: str) -> None:
        try:
            if not await self._repo.delete(db, planning_id):
                raise PlanningNotFoundError(planning_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
