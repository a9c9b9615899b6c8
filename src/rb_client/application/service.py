"""ClientApplicationService — client CRUD with creator scoping.

Non-admin callers only ever see clients they created; anything else is
reported as not found rather than forbidden.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_client.application.schemas import (
    ClientResponse,
    CreateClientRequest,
    UpdateClientRequest,
)
from src.rb_client.domain.models import Address, Client, ClientFilter
from src.rb_client.domain.repository import ClientRepositoryProtocol
from src.rb_client.infrastructure.persistence import ClientRepository
from src.rb_circuit.domain.repository import CircuitRepositoryProtocol
from src.rb_circuit.infrastructure.persistence import CircuitRepository
from src.rb_common.errors import CircuitNotFoundError, ClientNotFoundError, DuplicateCodeError
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset


class ClientApplicationService:
    def __init__(
        self,
        repo: ClientRepositoryProtocol | None = None,
        circuit_repo: CircuitRepositoryProtocol | None = None,
    ) -> None:
        self._repo: ClientRepositoryProtocol = repo or ClientRepository()
        self._circuits: CircuitRepositoryProtocol = circuit_repo or CircuitRepository()

    async def _check_circuit(self, db: AsyncSession, circuit_id: str | None) -> None:
        if circuit_id and await self._circuits.get_by_id(db, circuit_id) is None:
            raise CircuitNotFoundError(circuit_id)

    async def _get_scoped(
        self, db: AsyncSession, client_id: str, user_id: str, admin: bool
    ) -> Client:
        client = await self._repo.get_by_id(db, client_id)
        if client is None or (not admin and client.created_by != user_id):
            raise ClientNotFoundError(client_id)
        return client

    async def get_client(
        self, db: AsyncSession, client_id: str, user_id: str, admin: bool
    ) -> ClientResponse:
        client = await self._get_scoped(db, client_id, user_id, admin)
        return ClientResponse.from_domain(client)

    async def list_clients(
        self,
        db: AsyncSession,
        user_id: str,
        admin: bool,
        page: int,
        limit: int,
        flt: ClientFilter,
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        flt.owner_id = None if admin else user_id
        items, total = await self._repo.list_clients(db, flt, page_offset(page, limit), limit)
        return PageResponse(
            results=[ClientResponse.from_domain(c).to_wire() for c in items],
            page=page,
            limit=limit,
            total=total,
        )

    async def create_client(
        self, db: AsyncSession, req: CreateClientRequest, user_id: str
    ) -> ClientResponse:
        if req.code and await self._repo.get_by_code(db, req.code) is not None:
            raise DuplicateCodeError("Client", req.code)
        await self._check_circuit(db, req.circuit_id)
        addr = req.address
        client = Client(
            id=generate_id(),
            name=req.name,
            shop_name=req.shop_name,
            code=req.code,
            email=str(req.email).lower() if req.email else None,
            phone=req.phone,
            address=Address(
                street=addr.street if addr else None,
                city=addr.city if addr else None,
                governorate=addr.governorate if addr else None,
                postal_code=addr.postal_code if addr else None,
            ),
            type=req.type.value,
            segment=req.segment.value,
            circuit_id=req.circuit_id or None,
            is_active=req.is_active,
            archived=req.archived,
            notes=req.notes,
            created_by=user_id,
        )
        try:
            created = await self._repo.insert(db, client)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ClientResponse.from_domain(created)

    async def update_client(
        self,
        db: AsyncSession,
        client_id: str,
        req: UpdateClientRequest,
        user_id: str,
        admin: bool,
    ) -> ClientResponse:
        current = await self._get_scoped(db, client_id, user_id, admin)
        fields: dict[str, Any] = req.model_dump(exclude_unset=True, exclude={"address"})
        for key in ("type", "segment"):
            if fields.get(key) is not None:
                fields[key] = getattr(req, key).value
        if "email" in fields and fields["email"]:
            fields["email"] = str(fields["email"]).lower()
        if req.address is not None:
            fields.update(req.address.model_dump(exclude_unset=True))
        new_code = fields.get("code")
        if new_code and new_code != current.code:
            if await self._repo.get_by_code(db, new_code) is not None:
                raise DuplicateCodeError("Client", new_code)
        if "circuit_id" in fields:
            fields["circuit_id"] = fields["circuit_id"] or None
        await self._check_circuit(db, fields.get("circuit_id"))
        try:
            updated = await self._repo.update_fields(db, client_id, fields)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if updated is None:
            raise ClientNotFoundError(client_id)
        return ClientResponse.from_domain(updated)

    async def delete_client(
        self, db: AsyncSession, client_id: str, user_id: str, admin: bool
    ) -> None:
        await self._get_scoped(db, client_id, user_id, admin)
        try:
            await self._repo.delete(db, client_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
