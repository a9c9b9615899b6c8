"""CircuitService — delivery circuit CRUD with creator scoping.

Scoping mirrors clients: a non-admin caller only sees circuits they created,
and any other circuit is reported as not found.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.application.schemas import (
    CircuitResponse,
    CreateCircuitRequest,
    UpdateCircuitRequest,
)
from src.rb_circuit.domain.models import Circuit, CircuitFilter
from src.rb_circuit.domain.repository import CircuitRepositoryProtocol
from src.rb_circuit.infrastructure.persistence import CircuitRepository
from src.rb_client.application.schemas import ClientResponse
from src.rb_client.domain.repository import ClientRepositoryProtocol
from src.rb_client.infrastructure.persistence import ClientRepository
from src.rb_common.errors import CircuitNotFoundError, DuplicateCodeError
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset

logger = logging.getLogger(__name__)


class CircuitService:
    def __init__(
        self,
        repo: CircuitRepositoryProtocol | None = None,
        client_repo: ClientRepositoryProtocol | None = None,
    ) -> None:
        self._repo: CircuitRepositoryProtocol = repo or CircuitRepository()
        self._clients: ClientRepositoryProtocol = client_repo or ClientRepository()

    async def _get_scoped(
        self, db: AsyncSession, circuit_id: str, user_id: str, admin: bool
    ) -> Circuit:
        circuit = await self._repo.get_by_id(db, circuit_id)
        if circuit is None or (not admin and circuit.created_by != user_id):
            raise CircuitNotFoundError(circuit_id)
        return circuit

    async def get_circuit(
        self, db: AsyncSession, circuit_id: str, user_id: str, admin: bool
    ) -> CircuitResponse:
        return CircuitResponse.from_domain(await self._get_scoped(db, circuit_id, user_id, admin))

    async def list_circuits(
        self,
        db: AsyncSession,
        user_id: str,
        admin: bool,
        page: int,
        limit: int,
        flt: CircuitFilter,
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        flt.owner_id = None if admin else user_id
        items, total = await self._repo.list_circuits(db, flt, page_offset(page, limit), limit)
        return PageResponse(
            results=[CircuitResponse.from_domain(c).to_wire() for c in items],
            page=page,
            limit=limit,
            total=total,
        )

    async def list_circuit_clients(
        self, db: AsyncSession, circuit_id: str, user_id: str, admin: bool
    ) -> list[dict[str, Any]]:
        """Clients attached to the circuit, by name. Client scoping still applies."""
        await self._get_scoped(db, circuit_id, user_id, admin)
        clients = await self._clients.list_by_circuit(db, circuit_id, None if admin else user_id)
        return [ClientResponse.from_domain(c).to_wire() for c in clients]

    async def create_circuit(
        self, db: AsyncSession, req: CreateCircuitRequest, user_id: str
    ) -> CircuitResponse:
        code = req.code or None
        if code and await self._repo.get_by_code(db, code) is not None:
            raise DuplicateCodeError("Circuit", code)
        circuit = Circuit(
            id=generate_id(),
            name=req.name.strip(),
            code=code,
            zone=req.zone or None,
            region=req.region or None,
            client_ids=list(req.client_ids),
            stops=[s.to_domain() for s in req.stops],
            estimated_duration=req.estimated_duration,
            assigned_to=req.assigned_to or None,
            description=req.description,
            is_active=req.is_active,
            created_by=user_id,
        )
        try:
            created = await self._repo.insert(db, circuit)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Circuit %s created by %s", created.id, user_id)
        return CircuitResponse.from_domain(created)

    async def update_circuit(
        self,
        db: AsyncSession,
        circuit_id: str,
        req: UpdateCircuitRequest,
        user_id: str,
        admin: bool,
    ) -> CircuitResponse:
        current = await self._get_scoped(db, circuit_id, user_id, admin)
        fields: dict[str, Any] = req.model_dump(exclude_unset=True, exclude={"stops"})
        if req.stops is not None:
            fields["stops"] = [s.to_domain() for s in req.stops]
        for key in ("code", "assigned_to"):
            if key in fields and not fields[key]:
                fields[key] = None
        new_code = fields.get("code")
        if new_code and new_code != current.code:
            if await self._repo.get_by_code(db, new_code) is not None:
                raise DuplicateCodeError("Circuit", new_code)
        try:
            updated = await self._repo.update_fields(db, circuit_id, fields)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if updated is None:
            raise CircuitNotFoundError(circuit_id)
        return CircuitResponse.from_domain(updated)

    async def delete_circuit(self, db: AsyncSession, circuit_id: str) -> None:
        """ADMIN only. Clients and deliveries keep existing with no circuit."""
        try:
            if not await self._repo.delete(db, circuit_id):
                raise CircuitNotFoundError(circuit_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Circuit %s deleted", circuit_id)
