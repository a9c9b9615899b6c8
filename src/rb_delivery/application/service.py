"""DeliveryService — delivery transactions against client debt and product stock.

Primary writes (delivery row + lines + client debt, or N stock decrements +
status) share one transaction and abort together. The work-session post runs
only after that commit, through SessionPoster, and cannot fail the request.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_circuit.domain.repository import CircuitRepositoryProtocol
from src.rb_circuit.infrastructure.persistence import CircuitRepository
from src.rb_client.domain.repository import ClientRepositoryProtocol
from src.rb_client.infrastructure.persistence import ClientRepository
from src.rb_common.datetime_utils import ensure_utc, utc_now
from src.rb_common.enums import DeliveryStatus
from src.rb_common.errors import (
    CircuitNotFoundError,
    ClientNotFoundError,
    ConflictError,
    DeliveryLockedError,
    DeliveryNotFoundError,
    InsufficientStockError,
    NoProductLinesError,
    UnknownProductLineError,
)
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset
from src.rb_delivery.application.schemas import (
    CreateDeliveryRequest,
    DeliveryResponse,
    UpdateDeliveryRequest,
)
from src.rb_delivery.domain.models import Delivery, DeliveryFilter, DeliveryLine, compute_total
from src.rb_delivery.domain.repository import DeliveryRepositoryProtocol
from src.rb_delivery.domain.status import LOCKED, check_transition, parse_status
from src.rb_delivery.infrastructure.persistence import DeliveryRepository
from src.rb_product.domain.repository import ProductRepositoryProtocol
from src.rb_product.infrastructure.persistence import ProductRepository
from src.rb_session.application.ledger import SessionPoster

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, next day start) for a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class DeliveryService:
    def __init__(
        self,
        repo: DeliveryRepositoryProtocol | None = None,
        client_repo: ClientRepositoryProtocol | None = None,
        product_repo: ProductRepositoryProtocol | None = None,
        circuit_repo: CircuitRepositoryProtocol | None = None,
        poster: SessionPoster | None = None,
    ) -> None:
        self._repo: DeliveryRepositoryProtocol = repo or DeliveryRepository()
        self._clients: ClientRepositoryProtocol = client_repo or ClientRepository()
        self._products: ProductRepositoryProtocol = product_repo or ProductRepository()
        self._circuits: CircuitRepositoryProtocol = circuit_repo or CircuitRepository()
        self._poster = poster or SessionPoster()

    async def _get(self, db: AsyncSession, delivery_id: str) -> Delivery:
        delivery = await self._repo.get_by_id(db, delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError(delivery_id)
        return delivery

    async def _check_circuit(self, db: AsyncSession, circuit_id: str | None) -> None:
        if circuit_id and await self._circuits.get_by_id(db, circuit_id) is None:
            raise CircuitNotFoundError(circuit_id)

    async def get_delivery(self, db: AsyncSession, delivery_id: str) -> DeliveryResponse:
        return DeliveryResponse.from_domain(await self._get(db, delivery_id))

    async def list_deliveries(
        self,
        db: AsyncSession,
        page: int,
        limit: int,
        flt: DeliveryFilter,
        day: date | None = None,
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        if day is not None:
            # A single day wins over the from/to range
            flt.from_date, flt.before = day_bounds(day)
            flt.to_date = None
        items, total = await self._repo.list_deliveries(db, flt, page_offset(page, limit), limit)
        return PageResponse(
            results=[DeliveryResponse.from_domain(d).to_wire() for d in items],
            page=page,
            limit=limit,
            total=total,
        )

    async def list_by_date(self, db: AsyncSession, day: date) -> list[dict[str, Any]]:
        start, end = day_bounds(day)
        items, _ = await self._repo.list_deliveries(
            db, DeliveryFilter(from_date=start, before=end), None, None
        )
        return [DeliveryResponse.from_domain(d).to_wire() for d in items]

    async def list_by_client(self, db: AsyncSession, client_id: str) -> list[dict[str, Any]]:
        items, _ = await self._repo.list_deliveries(
            db, DeliveryFilter(client_id=client_id), None, None
        )
        return [DeliveryResponse.from_domain(d).to_wire() for d in items]

    async def _resolve_lines(
        self, db: AsyncSession, req: CreateDeliveryRequest
    ) -> list[DeliveryLine]:
        lines: list[DeliveryLine] = []
        for item in req.items:
            product = await self._products.get_by_id(db, item.product_id)
            if product is None:
                raise UnknownProductLineError(item.product_id)
            unit_price = item.unit_price if item.unit_price is not None else product.price
            lines.append(
                DeliveryLine(product_id=item.product_id, quantity=item.quantity, unit_price=unit_price)
            )
        return lines

    async def create_delivery(
        self, db: AsyncSession, req: CreateDeliveryRequest, user_id: str
    ) -> DeliveryResponse:
        lines = await self._resolve_lines(db, req)
        if await self._clients.get_by_id(db, req.client_id) is None:
            raise ClientNotFoundError(req.client_id)
        await self._check_circuit(db, req.circuit_id)
        delivery = Delivery(
            id=generate_id(),
            client_id=req.client_id,
            lines=lines,
            total_amount=compute_total(lines),
            circuit_id=req.circuit_id or None,
            assigned_to=req.assigned_to,
            planned_date=ensure_utc(req.planned_date) if req.planned_date else utc_now(),
            proof_photo=req.proof_photo,
            notes=req.notes,
            created_by=user_id,
            payment_type=req.payment_type.value,
        )
        try:
            await self._repo.insert(db, delivery)
            if await self._clients.increment_debt(db, delivery.client_id, delivery.total_amount) is None:
                raise ClientNotFoundError(delivery.client_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Delivery %s created for client %s (total=%d)",
            delivery.id, delivery.client_id, delivery.total_amount,
        )

        await self._poster.post_delivery(
            db,
            delivery.created_by or delivery.assigned_to,
            delivery.id,
            delivery.total_amount,
            delivery.payment_type,
        )
        created = await self._repo.get_by_id(db, delivery.id)
        return DeliveryResponse.from_domain(created or delivery)

    async def update_status(
        self,
        db: AsyncSession,
        delivery_id: str,
        status: str,
        completed_at: datetime | None = None,
        delivery_date: datetime | None = None,
        proof_photo: str | None = None,
    ) -> DeliveryResponse:
        target = parse_status(status)
        delivery = await self._get(db, delivery_id)
        current = DeliveryStatus(delivery.status)
        if current is target:
            return DeliveryResponse.from_domain(delivery)
        check_transition(current, target)

        try:
            if target is DeliveryStatus.DELIVERED:
                await self._complete(db, delivery, completed_at, delivery_date, proof_photo)
            else:
                await self._set_status(
                    db,
                    delivery,
                    target,
                    completed_at=utc_now() if target is DeliveryStatus.CANCELLED else None,
                )
                if target is DeliveryStatus.CANCELLED:
                    await self._reverse_debt(db, delivery)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Delivery %s: %s -> %s", delivery_id, current.value, target.value)
        return DeliveryResponse.from_domain(await self._get(db, delivery_id))

    async def _complete(
        self,
        db: AsyncSession,
        delivery: Delivery,
        completed_at: datetime | None,
        delivery_date: datetime | None,
        proof_photo: str | None,
    ) -> None:
        if not delivery.lines:
            raise NoProductLinesError()
        for line in delivery.lines:
            if await self._products.decrement_stock(db, line.product_id, line.quantity) is None:
                raise InsufficientStockError(line.product_id, line.quantity)
        done_at = ensure_utc(completed_at) if completed_at else utc_now()
        await self._set_status(
            db,
            delivery,
            DeliveryStatus.DELIVERED,
            completed_at=done_at,
            delivery_date=ensure_utc(delivery_date) if delivery_date else done_at,
            proof_photo=proof_photo,
        )

    async def _set_status(
        self, db: AsyncSession, delivery: Delivery, target: DeliveryStatus, **extra: Any
    ) -> None:
        if not await self._repo.set_status(db, delivery.id, delivery.status, target.value, **extra):
            raise ConflictError(
                f"Delivery {delivery.id} was modified concurrently", "CONCURRENT_UPDATE"
            )

    async def _reverse_debt(self, db: AsyncSession, delivery: Delivery) -> None:
        if await self._clients.increment_debt(db, delivery.client_id, -delivery.total_amount) is None:
            raise ClientNotFoundError(delivery.client_id)

    async def update_delivery(
        self, db: AsyncSession, delivery_id: str, req: UpdateDeliveryRequest
    ) -> DeliveryResponse:
        delivery = await self._get(db, delivery_id)
        if DeliveryStatus(delivery.status) in LOCKED:
            raise DeliveryLockedError(delivery.status)
        fields = req.model_dump(exclude_unset=True)
        if fields.get("planned_date") is not None:
            fields["planned_date"] = ensure_utc(fields["planned_date"])
        if "circuit_id" in fields:
            fields["circuit_id"] = fields["circuit_id"] or None
        await self._check_circuit(db, fields.get("circuit_id"))
        try:
            updated = await self._repo.update_fields(db, delivery_id, fields)
            if updated is None:
                # Locked or removed since the read above
                latest = await self._repo.get_by_id(db, delivery_id)
                if latest is None:
                    raise DeliveryNotFoundError(delivery_id)
                raise DeliveryLockedError(latest.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return DeliveryResponse.from_domain(updated)

    async def delete_delivery(self, db: AsyncSession, delivery_id: str) -> None:
        delivery = await self._get(db, delivery_id)
        if delivery.status == DeliveryStatus.DELIVERED.value:
            raise DeliveryLockedError(delivery.status)
        try:
            if not await self._repo.delete(db, delivery_id, delivery.status):
                raise ConflictError(
                    f"Delivery {delivery_id} was modified concurrently", "CONCURRENT_UPDATE"
                )
            if delivery.status != DeliveryStatus.CANCELLED.value:
                await self._reverse_debt(db, delivery)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Delivery %s deleted", delivery_id)
