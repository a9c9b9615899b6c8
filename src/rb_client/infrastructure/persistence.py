"""ClientRepository — concrete implementation of ClientRepositoryProtocol.

Debt mutations are single atomic UPDATE ... RETURNING statements. A result
of 0 rows means the client does not exist or the guard did not hold.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_client.domain.models import Address, Client, ClientFilter

_COLUMNS = """
    id, name, shop_name, code, email, phone,
    street, city, governorate, postal_code,
    type, segment, circuit_id, total_debt, total_orders, last_visit,
    is_active, archived, notes, created_by, created_at, updated_at
"""

# Columns client CRUD may write. total_debt is deliberately absent.
_UPDATABLE = {
    "name", "shop_name", "code", "email", "phone",
    "street", "city", "governorate", "postal_code",
    "type", "segment", "circuit_id", "total_orders", "last_visit",
    "is_active", "archived", "notes",
}

_SORTS = {
    "name": "name ASC",
    "-name": "name DESC",
    "shopName": "shop_name ASC",
    "-shopName": "shop_name DESC",
    "createdAt": "created_at ASC",
    "-createdAt": "created_at DESC",
    "totalDebt": "total_debt ASC",
    "-totalDebt": "total_debt DESC",
}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM clients WHERE id = :id")

_GET_BY_CODE_SQL = text(f"SELECT {_COLUMNS} FROM clients WHERE code = :code")

_INSERT_SQL = text(f"""
    INSERT INTO clients
        (id, name, shop_name, code, email, phone,
         street, city, governorate, postal_code,
         type, segment, circuit_id, total_debt, total_orders, last_visit,
         is_active, archived, notes, created_by)
    VALUES
        (:id, :name, :shop_name, :code, :email, :phone,
         :street, :city, :governorate, :postal_code,
         :type, :segment, :circuit_id, 0, :total_orders, :last_visit,
         :is_active, :archived, :notes, :created_by)
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM clients WHERE id = :id RETURNING id")

_BY_CIRCUIT_SQL = text(f"""
    SELECT {_COLUMNS} FROM clients
    WHERE circuit_id = :circuit_id
      AND (CAST(:owner_id AS VARCHAR) IS NULL OR created_by = :owner_id)
    ORDER BY name ASC, id ASC
""")

_INCREMENT_DEBT_SQL = text("""
    UPDATE clients
    SET total_debt = total_debt + :delta,
        updated_at = NOW()
    WHERE id = :id
    RETURNING total_debt
""")

_DECREMENT_DEBT_GUARDED_SQL = text("""
    UPDATE clients
    SET total_debt = total_debt - :amount,
        updated_at = NOW()
    WHERE id = :id AND total_debt >= :amount
    RETURNING total_debt
""")


def _row_to_client(row: Any) -> Client:
    return Client(
        id=row.id,
        name=row.name,
        shop_name=row.shop_name,
        code=row.code,
        email=row.email,
        phone=row.phone,
        address=Address(
            street=row.street,
            city=row.city,
            governorate=row.governorate,
            postal_code=row.postal_code,
        ),
        type=row.type,
        segment=row.segment,
        circuit_id=row.circuit_id,
        total_debt=row.total_debt,
        total_orders=row.total_orders,
        last_visit=row.last_visit,
        is_active=row.is_active,
        archived=row.archived,
        notes=row.notes,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _where(flt: ClientFilter) -> tuple[str, dict[str, Any]]:
    conditions: list[str] = []
    params: dict[str, Any] = {}
    if flt.owner_id is not None:
        conditions.append("created_by = :owner_id")
        params["owner_id"] = flt.owner_id
    if flt.type is not None:
        conditions.append("type = :type")
        params["type"] = flt.type
    if flt.segment is not None:
        conditions.append("segment = :segment")
        params["segment"] = flt.segment
    if flt.circuit_id is not None:
        conditions.append("circuit_id = :circuit_id")
        params["circuit_id"] = flt.circuit_id
    if flt.archived is not None:
        conditions.append("archived = :archived")
        params["archived"] = flt.archived
    if flt.is_active is not None:
        conditions.append("is_active = :is_active")
        params["is_active"] = flt.is_active
    if flt.search:
        conditions.append(
            "(name ILIKE :pattern OR shop_name ILIKE :pattern OR code ILIKE :pattern"
            " OR email ILIKE :pattern OR phone ILIKE :pattern OR city ILIKE :pattern)"
        )
        params["pattern"] = f"%{flt.search.strip()}%"
    clause = " AND ".join(conditions) if conditions else "TRUE"
    return clause, params


class ClientRepository:
    """Concrete repository — debt operations atomic at the SQL level."""

    async def get_by_id(self, db: AsyncSession, client_id: str) -> Client | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": client_id})).fetchone()
        return _row_to_client(row) if row else None

    async def get_by_code(self, db: AsyncSession, code: str) -> Client | None:
        row = (await db.execute(_GET_BY_CODE_SQL, {"code": code})).fetchone()
        return _row_to_client(row) if row else None

    async def insert(self, db: AsyncSession, client: Client) -> Client:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": client.id,
                "name": client.name,
                "shop_name": client.shop_name,
                "code": client.code,
                "email": client.email,
                "phone": client.phone,
                "street": client.address.street,
                "city": client.address.city,
                "governorate": client.address.governorate,
                "postal_code": client.address.postal_code,
                "type": client.type,
                "segment": client.segment,
                "circuit_id": client.circuit_id,
                "total_orders": client.total_orders,
                "last_visit": client.last_visit,
                "is_active": client.is_active,
                "archived": client.archived,
                "notes": client.notes,
                "created_by": client.created_by,
            },
        )
        return _row_to_client(result.fetchone())

    async def update_fields(
        self, db: AsyncSession, client_id: str, fields: dict[str, Any]
    ) -> Client | None:
        columns = [c for c in fields if c in _UPDATABLE]
        if not columns:
            return await self.get_by_id(db, client_id)
        assignments = ", ".join(f"{c} = :{c}" for c in columns)
        sql = text(
            f"UPDATE clients SET {assignments}, updated_at = NOW()"
            f" WHERE id = :id RETURNING {_COLUMNS}"
        )
        params = {c: fields[c] for c in columns}
        params["id"] = client_id
        row = (await db.execute(sql, params)).fetchone()
        return _row_to_client(row) if row else None

    async def delete(self, db: AsyncSession, client_id: str) -> bool:
        row = (await db.execute(_DELETE_SQL, {"id": client_id})).fetchone()
        return row is not None

    async def list_clients(
        self, db: AsyncSession, flt: ClientFilter, offset: int, limit: int
    ) -> tuple[list[Client], int]:
        clause, params = _where(flt)
        order_by = _SORTS.get(flt.sort or "", "name ASC")
        rows = (
            await db.execute(
                text(
                    f"SELECT {_COLUMNS} FROM clients WHERE {clause}"
                    f" ORDER BY {order_by}, id ASC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
        ).fetchall()
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM clients WHERE {clause}"), params)
        ).scalar_one()
        return [_row_to_client(r) for r in rows], int(total)

    async def list_by_circuit(
        self, db: AsyncSession, circuit_id: str, owner_id: str | None
    ) -> list[Client]:
        rows = (
            await db.execute(_BY_CIRCUIT_SQL, {"circuit_id": circuit_id, "owner_id": owner_id})
        ).fetchall()
        return [_row_to_client(r) for r in rows]

    async def increment_debt(
        self, db: AsyncSession, client_id: str, delta: int
    ) -> int | None:
        """Add delta (may be negative) to total_debt. None if the client does not exist."""
        row = (
            await db.execute(_INCREMENT_DEBT_SQL, {"id": client_id, "delta": delta})
        ).fetchone()
        return row.total_debt if row else None

    async def decrement_debt_guarded(
        self, db: AsyncSession, client_id: str, amount: int
    ) -> int | None:
        """Subtract amount only if total_debt >= amount at write time.

        None means either the client is missing or the guard failed; the
        caller disambiguates with get_by_id.
        """
        row = (
            await db.execute(_DECREMENT_DEBT_GUARDED_SQL, {"id": client_id, "amount": amount})
        ).fetchone()
        return row.total_debt if row else None
