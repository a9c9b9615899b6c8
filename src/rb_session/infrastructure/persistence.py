"""SessionRepository — concrete implementation of SessionRepositoryProtocol.

Ledger posts use a data-modifying CTE: the UPDATE on work_sessions is
guarded by status = 'ACTIVE' and the entry INSERT selects from its RETURNING
set, so the total and the entry land together or not at all.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.enums import SessionDeliveryType
from src.rb_session.domain.models import (
    DeliveryEntry,
    ExpenseEntry,
    PaymentEntry,
    SessionEntries,
    WorkSession,
)

_COLUMNS = """
    id, agent_id, start_time, end_time, status,
    total_cash_collected, total_credit_collected, total_credit_sales,
    total_expenses, total_revenue, created_at, updated_at
"""

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM work_sessions WHERE id = :id")

_GET_ACTIVE_SQL = text(f"""
    SELECT {_COLUMNS} FROM work_sessions
    WHERE agent_id = :agent_id AND status = 'ACTIVE'
""")

_INSERT_SQL = text(f"""
    INSERT INTO work_sessions (id, agent_id, start_time, status)
    VALUES (:id, :agent_id, :start_time, 'ACTIVE')
    RETURNING {_COLUMNS}
""")

_END_SQL = text(f"""
    UPDATE work_sessions
    SET status = 'ENDED',
        end_time = :end_time,
        total_revenue = total_cash_collected + total_credit_collected + total_credit_sales
    WHERE id = :id AND status = 'ACTIVE'
    RETURNING {_COLUMNS}
""")


def _post_sql(total_column: str, insert: str) -> Any:
    return text(f"""
        WITH s AS (
            UPDATE work_sessions
            SET {total_column} = {total_column} + :amount
            WHERE id = :session_id AND status = 'ACTIVE'
            RETURNING id
        )
        {insert}
        RETURNING id
    """)


_PAYMENT_INSERT = """
    INSERT INTO work_session_payments (session_id, kind, method, amount, payment_id)
    SELECT s.id, CAST(:kind AS VARCHAR), CAST(:method AS VARCHAR),
           CAST(:amount AS BIGINT), CAST(:payment_id AS VARCHAR)
    FROM s
"""

_DELIVERY_INSERT = """
    INSERT INTO work_session_deliveries (session_id, delivery_id, type, amount)
    SELECT s.id, CAST(:delivery_id AS VARCHAR), CAST(:type AS VARCHAR), CAST(:amount AS BIGINT)
    FROM s
"""

_EXPENSE_INSERT = """
    INSERT INTO work_session_expenses (session_id, label, amount)
    SELECT s.id, CAST(:label AS VARCHAR), CAST(:amount AS BIGINT)
    FROM s
"""

# Payment kind -> statement. CASH feeds cash collected, CREDIT feeds credit collected.
_PAYMENT_POST_SQL = {
    "CASH": _post_sql("total_cash_collected", _PAYMENT_INSERT),
    "CREDIT": _post_sql("total_credit_collected", _PAYMENT_INSERT),
}

# Delivery type -> statement. CREDIT deliveries count as credit sales.
_DELIVERY_POST_SQL = {
    SessionDeliveryType.CASH.value: _post_sql("total_cash_collected", _DELIVERY_INSERT),
    SessionDeliveryType.CREDIT.value: _post_sql("total_credit_sales", _DELIVERY_INSERT),
}

_EXPENSE_POST_SQL = _post_sql("total_expenses", _EXPENSE_INSERT)

_CREDIT_SALE_SQL = text("""
    UPDATE work_sessions
    SET total_credit_sales = total_credit_sales + :amount
    WHERE id = :session_id AND status = 'ACTIVE'
    RETURNING id
""")

# One query per log for a whole batch of sessions; client names come from
# the referenced ledger records, which may since have been deleted.
_PAYMENT_ENTRIES_SQL = text("""
    SELECT e.id, e.session_id, e.kind, e.method, e.amount, e.payment_id, e.created_at,
           c.id AS client_id, c.name AS client_name
    FROM work_session_payments e
    LEFT JOIN payments p ON p.id = e.payment_id
    LEFT JOIN clients c ON c.id = p.client_id
    WHERE e.session_id = ANY(:session_ids)
    ORDER BY e.id ASC
""")

_DELIVERY_ENTRIES_SQL = text("""
    SELECT e.id, e.session_id, e.delivery_id, e.type, e.amount, e.created_at,
           d.total_amount AS delivery_total,
           c.id AS client_id, c.name AS client_name
    FROM work_session_deliveries e
    LEFT JOIN deliveries d ON d.id = e.delivery_id
    LEFT JOIN clients c ON c.id = d.client_id
    WHERE e.session_id = ANY(:session_ids)
    ORDER BY e.id ASC
""")

_EXPENSE_ENTRIES_SQL = text("""
    SELECT id, session_id, label, amount, created_at
    FROM work_session_expenses
    WHERE session_id = ANY(:session_ids)
    ORDER BY id ASC
""")


def _row_to_session(row: Any) -> WorkSession:
    return WorkSession(
        id=row.id,
        agent_id=row.agent_id,
        start_time=row.start_time,
        end_time=row.end_time,
        status=row.status,
        total_cash_collected=row.total_cash_collected,
        total_credit_collected=row.total_credit_collected,
        total_credit_sales=row.total_credit_sales,
        total_expenses=row.total_expenses,
        total_revenue=row.total_revenue,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SessionRepository:
    async def get_by_id(self, db: AsyncSession, session_id: str) -> WorkSession | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": session_id})).fetchone()
        return _row_to_session(row) if row else None

    async def get_active(self, db: AsyncSession, agent_id: str) -> WorkSession | None:
        row = (await db.execute(_GET_ACTIVE_SQL, {"agent_id": agent_id})).fetchone()
        return _row_to_session(row) if row else None

    async def insert(self, db: AsyncSession, session: WorkSession) -> WorkSession:
        """Raises IntegrityError if the agent already holds an ACTIVE session."""
        result = await db.execute(
            _INSERT_SQL,
            {"id": session.id, "agent_id": session.agent_id, "start_time": session.start_time},
        )
        return _row_to_session(result.fetchone())

    async def end_session(
        self, db: AsyncSession, session_id: str, end_time: datetime
    ) -> WorkSession | None:
        row = (await db.execute(_END_SQL, {"id": session_id, "end_time": end_time})).fetchone()
        return _row_to_session(row) if row else None

    async def list_history(
        self,
        db: AsyncSession,
        agent_id: str,
        from_date: datetime | None,
        to_date: datetime | None,
        offset: int,
        limit: int,
    ) -> tuple[list[WorkSession], int]:
        conditions = ["agent_id = :agent_id"]
        params: dict[str, Any] = {"agent_id": agent_id}
        if from_date is not None:
            conditions.append("start_time >= :from_date")
            params["from_date"] = from_date
        if to_date is not None:
            conditions.append("start_time <= :to_date")
            params["to_date"] = to_date
        clause = " AND ".join(conditions)
        rows = (
            await db.execute(
                text(
                    f"SELECT {_COLUMNS} FROM work_sessions WHERE {clause}"
                    " ORDER BY start_time DESC, id DESC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
        ).fetchall()
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM work_sessions WHERE {clause}"), params)
        ).scalar_one()
        return [_row_to_session(r) for r in rows], int(total)

    async def entries_for(
        self, db: AsyncSession, session_ids: list[str]
    ) -> dict[str, SessionEntries]:
        out: dict[str, SessionEntries] = {sid: SessionEntries() for sid in session_ids}
        if not session_ids:
            return out
        params = {"session_ids": list(session_ids)}

        for r in (await db.execute(_PAYMENT_ENTRIES_SQL, params)).fetchall():
            out[r.session_id].payments.append(
                PaymentEntry(
                    entry_id=r.id,
                    session_id=r.session_id,
                    kind=r.kind,
                    method=r.method,
                    amount=r.amount,
                    payment_id=r.payment_id,
                    client_id=r.client_id,
                    client_name=r.client_name,
                    created_at=r.created_at,
                )
            )
        for r in (await db.execute(_DELIVERY_ENTRIES_SQL, params)).fetchall():
            out[r.session_id].deliveries.append(
                DeliveryEntry(
                    entry_id=r.id,
                    session_id=r.session_id,
                    delivery_id=r.delivery_id,
                    type=r.type,
                    amount=r.amount,
                    delivery_total=r.delivery_total,
                    client_id=r.client_id,
                    client_name=r.client_name,
                    created_at=r.created_at,
                )
            )
        for r in (await db.execute(_EXPENSE_ENTRIES_SQL, params)).fetchall():
            out[r.session_id].expenses.append(
                ExpenseEntry(
                    entry_id=r.id,
                    session_id=r.session_id,
                    label=r.label,
                    amount=r.amount,
                    created_at=r.created_at,
                )
            )
        return out

    async def add_payment_entry(
        self,
        db: AsyncSession,
        session_id: str,
        kind: str,
        method: str,
        amount: int,
        payment_id: str | None,
    ) -> bool:
        result = await db.execute(
            _PAYMENT_POST_SQL[kind],
            {
                "session_id": session_id,
                "kind": kind,
                "method": method,
                "amount": amount,
                "payment_id": payment_id,
            },
        )
        return result.fetchone() is not None

    async def add_delivery_entry(
        self, db: AsyncSession, session_id: str, delivery_id: str, type_: str, amount: int
    ) -> bool:
        result = await db.execute(
            _DELIVERY_POST_SQL[type_],
            {
                "session_id": session_id,
                "delivery_id": delivery_id,
                "type": type_,
                "amount": amount,
            },
        )
        return result.fetchone() is not None

    async def add_expense_entry(
        self, db: AsyncSession, session_id: str, label: str, amount: int
    ) -> bool:
        result = await db.execute(
            _EXPENSE_POST_SQL, {"session_id": session_id, "label": label, "amount": amount}
        )
        return result.fetchone() is not None

    async def add_credit_sale(self, db: AsyncSession, session_id: str, amount: int) -> bool:
        result = await db.execute(_CREDIT_SALE_SQL, {"session_id": session_id, "amount": amount})
        return result.fetchone() is not None
