"""Repository Protocol for payments."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_payment.domain.models import Payment, PaymentFilter, PaymentSummary


class PaymentRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, payment_id: str) -> Payment | None: ...

    async def insert(self, db: AsyncSession, payment: Payment) -> Payment: ...

    async def update_fields(
        self, db: AsyncSession, payment_id: str, fields: dict[str, Any]
    ) -> Payment | None: ...

    async def set_status(
        self, db: AsyncSession, payment_id: str, expected: str, target: str
    ) -> bool: ...

    async def delete(self, db: AsyncSession, payment_id: str, expected: str) -> bool: ...

    async def list_payments(
        self, db: AsyncSession, flt: PaymentFilter, offset: int | None, limit: int | None
    ) -> tuple[list[Payment], int]: ...

    async def summary(self, db: AsyncSession, flt: PaymentFilter) -> PaymentSummary: ...
