"""PaymentRepository — concrete implementation of PaymentRepositoryProtocol.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_payment.domain.models import Payment, PaymentFilter, PaymentSummary

_COLUMNS = """
    p.id, p.client_id, p.delivery_id, p.amount, p.currency, p.method, p.status,
    p.paid_at, p.received_by, p.notes, p.created_by, p.created_at, p.updated_at,
    c.name AS client_name
"""

_FROM = "payments p LEFT JOIN clients c ON c.id = p.client_id"

# status is moved only through set_status
_UPDATABLE = {"delivery_id", "currency", "method", "paid_at", "notes"}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM {_FROM} WHERE p.id = :id")

_INSERT_SQL = text("""
    INSERT INTO payments
        (id, client_id, delivery_id, amount, currency, method, status,
         paid_at, received_by, notes, created_by)
    VALUES
        (:id, :client_id, :delivery_id, :amount, :currency, :method, :status,
         :paid_at, :received_by, :notes, :created_by)
""")

_SET_STATUS_SQL = text("""
    UPDATE payments SET status = :target
    WHERE id = :id AND status = :expected
    RETURNING id
""")

_DELETE_SQL = text("DELETE FROM payments WHERE id = :id AND status = :expected RETURNING id")


def _row_to_payment(row: Any) -> Payment:
    return Payment(
        id=row.id,
        client_id=row.client_id,
        delivery_id=row.delivery_id,
        amount=row.amount,
        currency=row.currency,
        method=row.method,
        status=row.status,
        paid_at=row.paid_at,
        received_by=row.received_by,
        notes=row.notes,
        created_by=row.created_by,
        client_name=row.client_name,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _where(flt: PaymentFilter) -> tuple[str, dict[str, Any]]:
    conditions: list[str] = []
    params: dict[str, Any] = {}
    if flt.client_id is not None:
        conditions.append("p.client_id = :client_id")
        params["client_id"] = flt.client_id
    if flt.status is not None:
        conditions.append("p.status = :status")
        params["status"] = flt.status
    if flt.from_date is not None:
        conditions.append("p.paid_at >= :from_date")
        params["from_date"] = flt.from_date
    if flt.to_date is not None:
        conditions.append("p.paid_at <= :to_date")
        params["to_date"] = flt.to_date
    clause = " AND ".join(conditions) if conditions else "TRUE"
    return clause, params


class PaymentRepository:
    async def get_by_id(self, db: AsyncSession, payment_id: str) -> Payment | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": payment_id})).fetchone()
        return _row_to_payment(row) if row else None

    async def insert(self, db: AsyncSession, payment: Payment) -> Payment:
        await db.execute(
            _INSERT_SQL,
            {
                "id": payment.id,
                "client_id": payment.client_id,
                "delivery_id": payment.delivery_id,
                "amount": payment.amount,
                "currency": payment.currency,
                "method": payment.method,
                "status": payment.status,
                "paid_at": payment.paid_at,
                "received_by": payment.received_by,
                "notes": payment.notes,
                "created_by": payment.created_by,
            },
        )
        return payment

    async def update_fields(
        self, db: AsyncSession, payment_id: str, fields: dict[str, Any]
    ) -> Payment | None:
        columns = [c for c in fields if c in _UPDATABLE]
        if columns:
            assignments = ", ".join(f"{c} = :{c}" for c in columns)
            params = {c: fields[c] for c in columns}
            params["id"] = payment_id
            sql = text(f"UPDATE payments SET {assignments} WHERE id = :id RETURNING id")
            if (await db.execute(sql, params)).fetchone() is None:
                return None
        return await self.get_by_id(db, payment_id)

    async def set_status(
        self, db: AsyncSession, payment_id: str, expected: str, target: str
    ) -> bool:
        result = await db.execute(
            _SET_STATUS_SQL, {"id": payment_id, "expected": expected, "target": target}
        )
        return result.fetchone() is not None

    async def delete(self, db: AsyncSession, payment_id: str, expected: str) -> bool:
        result = await db.execute(_DELETE_SQL, {"id": payment_id, "expected": expected})
        return result.fetchone() is not None

    async def list_payments(
        self, db: AsyncSession, flt: PaymentFilter, offset: int | None, limit: int | None
    ) -> tuple[list[Payment], int]:
        clause, params = _where(flt)
        sql = f"SELECT {_COLUMNS} FROM {_FROM} WHERE {clause} ORDER BY p.paid_at DESC, p.id DESC"
        query_params = dict(params)
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            query_params.update(limit=limit, offset=offset or 0)
        rows = (await db.execute(text(sql), query_params)).fetchall()
        payments = [_row_to_payment(r) for r in rows]
        if limit is None:
            return payments, len(payments)
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM {_FROM} WHERE {clause}"), params)
        ).scalar_one()
        return payments, int(total)

    async def summary(self, db: AsyncSession, flt: PaymentFilter) -> PaymentSummary:
        clause, params = _where(flt)
        row = (
            await db.execute(
                text(
                    "SELECT"
                    " COALESCE(SUM(p.amount) FILTER (WHERE p.status = 'completed'), 0) AS collected,"
                    " COALESCE(SUM(p.amount) FILTER (WHERE p.status = 'pending'), 0) AS pending"
                    f" FROM {_FROM} WHERE {clause}"
                ),
                params,
            )
        ).fetchone()
        return PaymentSummary(total_collected=int(row.collected), pending=int(row.pending))
