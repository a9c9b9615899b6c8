"""PaymentService — payments against client debt.

Creation debits nothing up front: the guarded decrement
(total_debt >= amount in the same UPDATE) is the only debt check, so two
concurrent payments can never drive a client below zero.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_client.domain.repository import ClientRepositoryProtocol
from src.rb_client.infrastructure.persistence import ClientRepository
from src.rb_common.datetime_utils import ensure_utc, utc_now
from src.rb_common.enums import PaymentStatus
from src.rb_common.errors import (
    AmountExceedsDebtError,
    BadRequestError,
    ClientNotFoundError,
    ConflictError,
    PaymentCancelledError,
    PaymentNotFoundError,
)
from src.rb_common.id_generator import generate_id
from src.rb_common.millimes import millimes_to_display
from src.rb_common.pagination import clamp_limit, clamp_page, page_offset
from src.rb_payment.application.schemas import (
    CreatePaymentRequest,
    PaymentResponse,
    UpdatePaymentRequest,
)
from src.rb_payment.domain.models import Payment, PaymentFilter
from src.rb_payment.domain.repository import PaymentRepositoryProtocol
from src.rb_payment.infrastructure.persistence import PaymentRepository
from src.rb_session.application.ledger import SessionPoster

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(
        self,
        repo: PaymentRepositoryProtocol | None = None,
        client_repo: ClientRepositoryProtocol | None = None,
        poster: SessionPoster | None = None,
    ) -> None:
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()
        self._clients: ClientRepositoryProtocol = client_repo or ClientRepository()
        self._poster = poster or SessionPoster()

    async def _get(self, db: AsyncSession, payment_id: str) -> Payment:
        payment = await self._repo.get_by_id(db, payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    async def get_payment(self, db: AsyncSession, payment_id: str) -> PaymentResponse:
        return PaymentResponse.from_domain(await self._get(db, payment_id))

    async def list_payments(
        self, db: AsyncSession, page: int, limit: int, flt: PaymentFilter
    ) -> dict[str, Any]:
        page, limit = clamp_page(page), clamp_limit(limit)
        items, total = await self._repo.list_payments(db, flt, page_offset(page, limit), limit)
        summary = await self._repo.summary(db, flt)
        return {
            "results": [PaymentResponse.from_domain(p).to_wire() for p in items],
            "summary": {"totalCollected": summary.total_collected, "pending": summary.pending},
            "page": page,
            "limit": limit,
            "total": total,
        }

    async def list_by_client(self, db: AsyncSession, client_id: str) -> list[dict[str, Any]]:
        items, _ = await self._repo.list_payments(db, PaymentFilter(client_id=client_id), None, None)
        return [PaymentResponse.from_domain(p).to_wire() for p in items]

    async def list_by_date_range(
        self, db: AsyncSession, from_date: datetime | None, to_date: datetime | None
    ) -> list[dict[str, Any]]:
        flt = PaymentFilter(
            from_date=ensure_utc(from_date) if from_date else None,
            to_date=ensure_utc(to_date) if to_date else None,
        )
        items, _ = await self._repo.list_payments(db, flt, None, None)
        return [PaymentResponse.from_domain(p).to_wire() for p in items]

    async def create_payment(
        self, db: AsyncSession, req: CreatePaymentRequest, user_id: str
    ) -> PaymentResponse:
        if req.status is PaymentStatus.CANCELLED:
            raise BadRequestError("A payment cannot be created as cancelled")
        payment = Payment(
            id=generate_id(),
            client_id=req.client_id,
            delivery_id=req.delivery_id,
            amount=req.amount,
            currency=req.currency,
            method=req.method.value,
            status=req.status.value,
            paid_at=ensure_utc(req.paid_at) if req.paid_at else utc_now(),
            received_by=req.received_by or user_id,
            notes=req.notes,
            created_by=user_id,
        )
        try:
            remaining = await self._clients.decrement_debt_guarded(
                db, payment.client_id, payment.amount
            )
            if remaining is None:
                client = await self._clients.get_by_id(db, payment.client_id)
                if client is None:
                    raise ClientNotFoundError(payment.client_id)
                raise AmountExceedsDebtError(
                    millimes_to_display(payment.amount), millimes_to_display(client.total_debt)
                )
            await self._repo.insert(db, payment)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Payment %s of %d recorded for client %s (debt now %d)",
            payment.id, payment.amount, payment.client_id, remaining,
        )

        # Only the caller's own session is ever touched; received_by is informational
        await self._poster.post_payment(
            db,
            user_id,
            payment.id,
            payment.amount,
            payment.method,
        )
        created = await self._repo.get_by_id(db, payment.id)
        return PaymentResponse.from_domain(created or payment)

    async def update_payment(
        self, db: AsyncSession, payment_id: str, req: UpdatePaymentRequest
    ) -> PaymentResponse:
        payment = await self._get(db, payment_id)
        fields = req.model_dump(exclude_unset=True, exclude={"status"})
        if fields.get("method") is not None:
            fields["method"] = req.method.value
        if fields.get("paid_at") is not None:
            fields["paid_at"] = ensure_utc(fields["paid_at"])
        target = req.status.value if req.status is not None else None
        changes_status = target is not None and target != payment.status
        if changes_status and payment.status == PaymentStatus.CANCELLED.value:
            raise PaymentCancelledError(payment_id)

        try:
            if changes_status:
                if not await self._repo.set_status(db, payment_id, payment.status, target):
                    raise ConflictError(
                        f"Payment {payment_id} was modified concurrently", "CONCURRENT_UPDATE"
                    )
                if target == PaymentStatus.CANCELLED.value:
                    await self._restore_debt(db, payment)
            updated = await self._repo.update_fields(db, payment_id, fields)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if updated is None:
            raise PaymentNotFoundError(payment_id)
        return PaymentResponse.from_domain(updated)

    async def delete_payment(self, db: AsyncSession, payment_id: str) -> None:
        payment = await self._get(db, payment_id)
        try:
            if not await self._repo.delete(db, payment_id, payment.status):
                raise ConflictError(
                    f"Payment {payment_id} was modified concurrently", "CONCURRENT_UPDATE"
                )
            if payment.status != PaymentStatus.CANCELLED.value:
                await self._restore_debt(db, payment)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Payment %s deleted", payment_id)

    async def _restore_debt(self, db: AsyncSession, payment: Payment) -> None:
        if await self._clients.increment_debt(db, payment.client_id, payment.amount) is None:
            raise ClientNotFoundError(payment.client_id)
