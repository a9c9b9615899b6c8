"""DeliveryRepository — concrete implementation of DeliveryRepositoryProtocol.

Lines live in delivery_lines keyed by (delivery_id, position) and are written
once, at insert. Reads join clients for the display name and fetch lines for a
whole page in one query.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_delivery.domain.models import Delivery, DeliveryFilter, DeliveryLine

_COLUMNS = """
    d.id, d.client_id, d.circuit_id, d.total_amount, d.status, d.assigned_to,
    d.planned_date, d.delivery_date, d.completed_at, d.proof_photo, d.notes,
    d.created_by, d.payment_type, d.created_at, d.updated_at,
    c.name AS client_name
"""

_FROM = "deliveries d LEFT JOIN clients c ON c.id = d.client_id"

_UPDATABLE = {"circuit_id", "assigned_to", "planned_date", "proof_photo", "notes"}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM {_FROM} WHERE d.id = :id")

_INSERT_SQL = text("""
    INSERT INTO deliveries
        (id, client_id, circuit_id, total_amount, status, assigned_to,
         planned_date, proof_photo, notes, created_by, payment_type)
    VALUES
        (:id, :client_id, :circuit_id, :total_amount, :status, :assigned_to,
         :planned_date, :proof_photo, :notes, :created_by, :payment_type)
""")

_INSERT_LINE_SQL = text("""
    INSERT INTO delivery_lines (delivery_id, position, product_id, quantity, unit_price)
    VALUES (:delivery_id, :position, :product_id, :quantity, :unit_price)
""")

_LINES_SQL = text("""
    SELECT delivery_id, product_id, quantity, unit_price
    FROM delivery_lines
    WHERE delivery_id = ANY(:ids)
    ORDER BY delivery_id, position
""")

_SET_STATUS_SQL = text("""
    UPDATE deliveries
    SET status = :target,
        completed_at = COALESCE(:completed_at, completed_at),
        delivery_date = COALESCE(:delivery_date, delivery_date),
        proof_photo = COALESCE(:proof_photo, proof_photo)
    WHERE id = :id AND status = :expected
    RETURNING id
""")

_DELETE_SQL = text("DELETE FROM deliveries WHERE id = :id AND status = :expected RETURNING id")


def _row_to_delivery(row: Any) -> Delivery:
    return Delivery(
        id=row.id,
        client_id=row.client_id,
        circuit_id=row.circuit_id,
        total_amount=row.total_amount,
        status=row.status,
        assigned_to=row.assigned_to,
        planned_date=row.planned_date,
        delivery_date=row.delivery_date,
        completed_at=row.completed_at,
        proof_photo=row.proof_photo,
        notes=row.notes,
        created_by=row.created_by,
        payment_type=row.payment_type,
        client_name=row.client_name,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _where(flt: DeliveryFilter) -> tuple[str, dict[str, Any]]:
    conditions: list[str] = []
    params: dict[str, Any] = {}
    if flt.client_id is not None:
        conditions.append("d.client_id = :client_id")
        params["client_id"] = flt.client_id
    if flt.circuit_id is not None:
        conditions.append("d.circuit_id = :circuit_id")
        params["circuit_id"] = flt.circuit_id
    if flt.status is not None:
        conditions.append("d.status = :status")
        params["status"] = flt.status
    if flt.from_date is not None:
        conditions.append("d.planned_date >= :from_date")
        params["from_date"] = flt.from_date
    if flt.to_date is not None:
        conditions.append("d.planned_date <= :to_date")
        params["to_date"] = flt.to_date
    if flt.before is not None:
        conditions.append("d.planned_date < :before")
        params["before"] = flt.before
    clause = " AND ".join(conditions) if conditions else "TRUE"
    return clause, params


class DeliveryRepository:
    async def _attach_lines(self, db: AsyncSession, deliveries: list[Delivery]) -> None:
        if not deliveries:
            return
        by_id = {d.id: d for d in deliveries}
        rows = (await db.execute(_LINES_SQL, {"ids": list(by_id)})).fetchall()
        for r in rows:
            by_id[r.delivery_id].lines.append(
                DeliveryLine(product_id=r.product_id, quantity=r.quantity, unit_price=r.unit_price)
            )

    async def get_by_id(self, db: AsyncSession, delivery_id: str) -> Delivery | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": delivery_id})).fetchone()
        if row is None:
            return None
        delivery = _row_to_delivery(row)
        await self._attach_lines(db, [delivery])
        return delivery

    async def insert(self, db: AsyncSession, delivery: Delivery) -> Delivery:
        await db.execute(
            _INSERT_SQL,
            {
                "id": delivery.id,
                "client_id": delivery.client_id,
                "circuit_id": delivery.circuit_id,
                "total_amount": delivery.total_amount,
                "status": delivery.status,
                "assigned_to": delivery.assigned_to,
                "planned_date": delivery.planned_date,
                "proof_photo": delivery.proof_photo,
                "notes": delivery.notes,
                "created_by": delivery.created_by,
                "payment_type": delivery.payment_type,
            },
        )
        if delivery.lines:
            await db.execute(
                _INSERT_LINE_SQL,
                [
                    {
                        "delivery_id": delivery.id,
                        "position": i,
                        "product_id": line.product_id,
                        "quantity": line.quantity,
                        "unit_price": line.unit_price,
                    }
                    for i, line in enumerate(delivery.lines)
                ],
            )
        return delivery

    async def update_fields(
        self, db: AsyncSession, delivery_id: str, fields: dict[str, Any]
    ) -> Delivery | None:
        columns = [c for c in fields if c in _UPDATABLE]
        if columns:
            assignments = ", ".join(f"{c} = :{c}" for c in columns)
            params = {c: fields[c] for c in columns}
            params["id"] = delivery_id
            sql = text(
                f"UPDATE deliveries SET {assignments}"
                " WHERE id = :id AND status IN ('pending', 'in_progress') RETURNING id"
            )
            if (await db.execute(sql, params)).fetchone() is None:
                return None
        return await self.get_by_id(db, delivery_id)

    async def set_status(
        self,
        db: AsyncSession,
        delivery_id: str,
        expected: str,
        target: str,
        completed_at: datetime | None = None,
        delivery_date: datetime | None = None,
        proof_photo: str | None = None,
    ) -> bool:
        result = await db.execute(
            _SET_STATUS_SQL,
            {
                "id": delivery_id,
                "expected": expected,
                "target": target,
                "completed_at": completed_at,
                "delivery_date": delivery_date,
                "proof_photo": proof_photo,
            },
        )
        return result.fetchone() is not None

    async def delete(self, db: AsyncSession, delivery_id: str, expected: str) -> bool:
        result = await db.execute(_DELETE_SQL, {"id": delivery_id, "expected": expected})
        return result.fetchone() is not None

    async def list_deliveries(
        self, db: AsyncSession, flt: DeliveryFilter, offset: int | None, limit: int | None
    ) -> tuple[list[Delivery], int]:
        """offset/limit of None returns every match (by-date and by-client views)."""
        clause, params = _where(flt)
        sql = f"SELECT {_COLUMNS} FROM {_FROM} WHERE {clause} ORDER BY d.planned_date DESC, d.id DESC"
        query_params = dict(params)
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            query_params.update(limit=limit, offset=offset or 0)
        rows = (await db.execute(text(sql), query_params)).fetchall()
        deliveries = [_row_to_delivery(r) for r in rows]
        await self._attach_lines(db, deliveries)
        if limit is None:
            return deliveries, len(deliveries)
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM {_FROM} WHERE {clause}"), params)
        ).scalar_one()
        return deliveries, int(total)
