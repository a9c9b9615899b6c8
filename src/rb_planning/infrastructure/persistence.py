"""PlanningRepository — concrete implementation of PlanningRepositoryProtocol.

Stops and the client id list live in JSONB columns. Reads join circuits for
the display name.

Transaction ownership: the CALLER commits or rolls back.
"""

import json
from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_planning.domain.models import Planning, PlanningFilter, PlanningStop

_COLUMNS = """
    p.id, p.circuit_id, p.title, p.plan_date, p.plan_time, p.status, p.stops,
    p.commercial, p.client_ids, p.notes, p.created_by, p.created_at, p.updated_at,
    ci.name AS circuit_name
"""

_FROM = "plannings p LEFT JOIN circuits ci ON ci.id = p.circuit_id"

# domain field -> column
_UPDATABLE = {
    "circuit_id": "circuit_id",
    "title": "title",
    "date": "plan_date",
    "time": "plan_time",
    "status": "status",
    "stops": "stops",
    "commercial": "commercial",
    "client_ids": "client_ids",
    "notes": "notes",
}

_JSON_COLUMNS = {"stops", "client_ids"}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM {_FROM} WHERE p.id = :id")

_FOR_COMMERCIAL_SQL = text(f"""
    SELECT {_COLUMNS} FROM {_FROM}
    WHERE p.plan_date = :plan_date AND p.commercial = :commercial
""")

_INSERT_SQL = text("""
    INSERT INTO plannings
        (id, circuit_id, title, plan_date, plan_time, status, stops,
         commercial, client_ids, notes, created_by)
    VALUES
        (:id, :circuit_id, :title, :plan_date, :plan_time, :status, CAST(:stops AS JSONB),
         :commercial, CAST(:client_ids AS JSONB), :notes, :created_by)
""")

_DELETE_SQL = text("DELETE FROM plannings WHERE id = :id RETURNING id")


def _load(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return json.loads(value)
    return list(value)


def _dump_stops(stops: list[PlanningStop]) -> str:
    return json.dumps(
        [{"clientId": s.client_id, "order": s.order, "action": s.action} for s in stops]
    )


def _row_to_planning(row: Any) -> Planning:
    return Planning(
        id=row.id,
        date=row.plan_date,
        circuit_id=row.circuit_id,
        circuit_name=row.circuit_name,
        title=row.title,
        time=row.plan_time,
        status=row.status,
        stops=[
            PlanningStop(
                client_id=s["clientId"], order=s.get("order", 0), action=s.get("action", "task")
            )
            for s in _load(row.stops)
        ],
        commercial=row.commercial,
        client_ids=[str(c) for c in _load(row.client_ids)],
        notes=row.notes,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _where(flt: PlanningFilter) -> tuple[str, dict[str, Any]]:
    conditions: list[str] = []
    params: dict[str, Any] = {}
    if flt.commercial is not None:
        conditions.append("p.commercial = :commercial")
        params["commercial"] = flt.commercial
    if flt.from_date is not None:
        conditions.append("p.plan_date >= :from_date")
        params["from_date"] = flt.from_date
    if flt.to_date is not None:
        conditions.append("p.plan_date <= :to_date")
        params["to_date"] = flt.to_date
    clause = " AND ".join(conditions) if conditions else "TRUE"
    return clause, params


class PlanningRepository:
    async def get_by_id(self, db: AsyncSession, planning_id: str) -> Planning | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": planning_id})).fetchone()
        return _row_to_planning(row) if row else None

    async def find_for_commercial(
        self, db: AsyncSession, day: date, commercial: str
    ) -> Planning | None:
        row = (
            await db.execute(_FOR_COMMERCIAL_SQL, {"plan_date": day, "commercial": commercial})
        ).fetchone()
        return _row_to_planning(row) if row else None

    async def insert(self, db: AsyncSession, planning: Planning) -> Planning:
        await db.execute(
            _INSERT_SQL,
            {
                "id": planning.id,
                "circuit_id": planning.circuit_id,
                "title": planning.title,
                "plan_date": planning.date,
                "plan_time": planning.time,
                "status": planning.status,
                "stops": _dump_stops(planning.stops),
                "commercial": planning.commercial,
                "client_ids": json.dumps(planning.client_ids),
                "notes": planning.notes,
                "created_by": planning.created_by,
            },
        )
        return planning

    async def update_fields(
        self, db: AsyncSession, planning_id: str, fields: dict[str, Any]
    ) -> Planning | None:
        keys = [k for k in fields if k in _UPDATABLE]
        if keys:
            assignments = ", ".join(
                f"{_UPDATABLE[k]} = CAST(:{k} AS JSONB)" if k in _JSON_COLUMNS
                else f"{_UPDATABLE[k]} = :{k}"
                for k in keys
            )
            params: dict[str, Any] = {k: fields[k] for k in keys}
            if "stops" in params:
                params["stops"] = _dump_stops(params["stops"])
            if "client_ids" in params:
                params["client_ids"] = json.dumps(params["client_ids"])
            params["id"] = planning_id
            sql = text(f"UPDATE plannings SET {assignments} WHERE id = :id RETURNING id")
            if (await db.execute(sql, params)).fetchone() is None:
                return None
        return await self.get_by_id(db, planning_id)

    async def delete(self, db: AsyncSession, planning_id: str) -> bool:
        row = (await db.execute(_DELETE_SQL, {"id": planning_id})).fetchone()
        return row is not None

    async def list_plannings(
        self,
        db: AsyncSession,
        flt: PlanningFilter,
        offset: int | None,
        limit: int | None,
        newest_first: bool = True,
    ) -> tuple[list[Planning], int]:
        clause, params = _where(flt)
        direction = "DESC" if newest_first else "ASC"
        sql = f"SELECT {_COLUMNS} FROM {_FROM} WHERE {clause} ORDER BY p.plan_date {direction}, p.id"
        query_params = dict(params)
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            query_params.update(limit=limit, offset=offset or 0)
        rows = (await db.execute(text(sql), query_params)).fetchall()
        if limit is None:
            return [_row_to_planning(r) for r in rows], len(rows)
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM plannings p WHERE {clause}"), params)
        ).scalar_one()
        return [_row_to_planning(r) for r in rows], int(total)
