"""Repository Protocol for deliveries.

set_status and delete are guarded on the status the caller read, so two
requests racing on the same delivery cannot both apply their side effects.
update_fields only matches a delivery that is still pending or in progress
and returns None otherwise.
"""

from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_delivery.domain.models import Delivery, DeliveryFilter


class DeliveryRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, delivery_id: str) -> Delivery | None: ...

    async def insert(self, db: AsyncSession, delivery: Delivery) -> Delivery: ...

    async def update_fields(
        self, db: AsyncSession, delivery_id: str, fields: dict[str, Any]
    ) -> Delivery | None: ...

    async def set_status(
        self,
        db: AsyncSession,
        delivery_id: str,
        expected: str,
        target: str,
        completed_at: datetime | None = None,
        delivery_date: datetime | None = None,
        proof_photo: str | None = None,
    ) -> bool: ...

    async def delete(self, db: AsyncSession, delivery_id: str, expected: str) -> bool: ...

    async def list_deliveries(
        self, db: AsyncSession, flt: DeliveryFilter, offset: int | None, limit: int | None
    ) -> tuple[list[Delivery], int]: ...
