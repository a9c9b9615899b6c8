"""CircuitRepository — concrete implementation of CircuitRepositoryProtocol.

The ordered stop list and the client id list are stored as JSONB on the
circuit row; clients point back at their circuit through clients.circuit_id.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.domain.models import Circuit, CircuitFilter, CircuitStop

_COLUMNS = """
    id, name, code, zone, region, client_ids, stops, estimated_duration,
    assigned_to, description, is_active, created_by, created_at, updated_at
"""

_UPDATABLE = {
    "name", "code", "zone", "region", "client_ids", "stops",
    "estimated_duration", "assigned_to", "description", "is_active",
}

_JSON_COLUMNS = {"client_ids", "stops"}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM circuits WHERE id = :id")

_GET_BY_CODE_SQL = text(f"SELECT {_COLUMNS} FROM circuits WHERE code = :code")

_INSERT_SQL = text(f"""
    INSERT INTO circuits
        (id, name, code, zone, region, client_ids, stops, estimated_duration,
         assigned_to, description, is_active, created_by)
    VALUES
        (:id, :name, :code, :zone, :region,
         CAST(:client_ids AS JSONB), CAST(:stops AS JSONB), :estimated_duration,
         :assigned_to, :description, :is_active, :created_by)
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM circuits WHERE id = :id RETURNING id")


def _load(value: Any) -> list[Any]:
    # asyncpg hands JSONB back as text unless a codec is registered
    if value is None:
        return []
    if isinstance(value, str):
        return json.loads(value)
    return list(value)


def _dump_stops(stops: list[Any]) -> str:
    return json.dumps([
        {"clientId": s.client_id, "order": s.order, "lat": s.lat, "lng": s.lng}
        for s in stops
    ])


def _row_to_circuit(row: Any) -> Circuit:
    return Circuit(
        id=row.id,
        name=row.name,
        code=row.code,
        zone=row.zone,
        region=row.region,
        client_ids=[str(c) for c in _load(row.client_ids)],
        stops=[
            CircuitStop(
                client_id=s["clientId"],
                order=s.get("order", 0),
                lat=s.get("lat", 0.0),
                lng=s.get("lng", 0.0),
            )
            for s in _load(row.stops)
        ],
        estimated_duration=row.estimated_duration,
        assigned_to=row.assigned_to,
        description=row.description,
        is_active=row.is_active,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _where(flt: CircuitFilter) -> tuple[str, dict[str, Any]]:
    conditions: list[str] = []
    params: dict[str, Any] = {}
    if flt.owner_id is not None:
        conditions.append("created_by = :owner_id")
        params["owner_id"] = flt.owner_id
    if flt.zone:
        conditions.append("zone = :zone")
        params["zone"] = flt.zone
    if flt.is_active is not None:
        conditions.append("is_active = :is_active")
        params["is_active"] = flt.is_active
    if flt.search:
        conditions.append(
            "(name ILIKE :pattern OR code ILIKE :pattern"
            " OR zone ILIKE :pattern OR region ILIKE :pattern)"
        )
        params["pattern"] = f"%{flt.search.strip()}%"
    clause = " AND ".join(conditions) if conditions else "TRUE"
    return clause, params


class CircuitRepository:
    async def get_by_id(self, db: AsyncSession, circuit_id: str) -> Circuit | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": circuit_id})).fetchone()
        return _row_to_circuit(row) if row else None

    async def get_by_code(self, db: AsyncSession, code: str) -> Circuit | None:
        row = (await db.execute(_GET_BY_CODE_SQL, {"code": code})).fetchone()
        return _row_to_circuit(row) if row else None

    async def insert(self, db: AsyncSession, circuit: Circuit) -> Circuit:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": circuit.id,
                "name": circuit.name,
                "code": circuit.code,
                "zone": circuit.zone,
                "region": circuit.region,
                "client_ids": json.dumps(circuit.client_ids),
                "stops": _dump_stops(circuit.stops),
                "estimated_duration": circuit.estimated_duration,
                "assigned_to": circuit.assigned_to,
                "description": circuit.description,
                "is_active": circuit.is_active,
                "created_by": circuit.created_by,
            },
        )
        return _row_to_circuit(result.fetchone())

    async def update_fields(
        self, db: AsyncSession, circuit_id: str, fields: dict[str, Any]
    ) -> Circuit | None:
        columns = [c for c in fields if c in _UPDATABLE]
        if not columns:
            return await self.get_by_id(db, circuit_id)
        assignments = ", ".join(
            f"{c} = CAST(:{c} AS JSONB)" if c in _JSON_COLUMNS else f"{c} = :{c}"
            for c in columns
        )
        params: dict[str, Any] = {c: fields[c] for c in columns}
        if "stops" in params:
            params["stops"] = _dump_stops(params["stops"])
        if "client_ids" in params:
            params["client_ids"] = json.dumps(params["client_ids"])
        params["id"] = circuit_id
        sql = text(
            f"UPDATE circuits SET {assignments}, updated_at = NOW()"
            f" WHERE id = :id RETURNING {_COLUMNS}"
        )
        row = (await db.execute(sql, params)).fetchone()
        return _row_to_circuit(row) if row else None

    async def delete(self, db: AsyncSession, circuit_id: str) -> bool:
        row = (await db.execute(_DELETE_SQL, {"id": circuit_id})).fetchone()
        return row is not None

    async def list_circuits(
        self, db: AsyncSession, flt: CircuitFilter, offset: int, limit: int
    ) -> tuple[list[Circuit], int]:
        clause, params = _where(flt)
        rows = (
            await db.execute(
                text(
                    f"SELECT {_COLUMNS} FROM circuits WHERE {clause}"
                    " ORDER BY name ASC, id ASC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
        ).fetchall()
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM circuits WHERE {clause}"), params)
        ).scalar_one()
        return [_row_to_circuit(r) for r in rows], int(total)
