"""Repository Protocol — dependency inversion for testability.

Debt is only ever moved through increment_debt / decrement_debt_guarded,
both single-statement atomic updates executed inside the caller's
transaction.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_client.domain.models import Client, ClientFilter


class ClientRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, client_id: str) -> Client | None: ...

    async def get_by_code(self, db: AsyncSession, code: str) -> Client | None: ...

    async def insert(self, db: AsyncSession, client: Client) -> Client: ...

    async def update_fields(
        self, db: AsyncSession, client_id: str, fields: dict[str, Any]
    ) -> Client | None: ...

    async def delete(self, db: AsyncSession, client_id: str) -> bool: ...

    async def list_clients(
        self, db: AsyncSession, flt: ClientFilter, offset: int, limit: int
    ) -> tuple[list[Client], int]: ...

    async def list_by_circuit(
        self, db: AsyncSession, circuit_id: str, owner_id: str | None
    ) -> list[Client]: ...

    async def increment_debt(
        self, db: AsyncSession, client_id: str, delta: int
    ) -> int | None: ...

    async def decrement_debt_guarded(
        self, db: AsyncSession, client_id: str, amount: int
    ) -> int | None: ...
