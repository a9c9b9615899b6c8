"""Repository Protocol for delivery circuits."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.domain.models import Circuit, CircuitFilter


class CircuitRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, circuit_id: str) -> Circuit | None: ...

    async def get_by_code(self, db: AsyncSession, code: str) -> Circuit | None: ...

    async def insert(self, db: AsyncSession, circuit: Circuit) -> Circuit: ...

    async def update_fields(
        self, db: AsyncSession, circuit_id: str, fields: dict[str, Any]
    ) -> Circuit | None: ...

    async def delete(self, db: AsyncSession, circuit_id: str) -> bool: ...

    async def list_circuits(
        self, db: AsyncSession, flt: CircuitFilter, offset: int, limit: int
    ) -> tuple[list[Circuit], int]: ...
