"""Domain models for rb_delivery — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.rb_common.enums import DeliveryStatus, SessionDeliveryType
from src.rb_common.millimes import line_total


@dataclass
class DeliveryLine:
    product_id: str
    quantity: int
    unit_price: int             # millimes

    @property
    def total(self) -> int:
        return line_total(self.quantity, self.unit_price)


@dataclass
class Delivery:
    id: str
    client_id: str
    lines: list[DeliveryLine] = field(default_factory=list)
    total_amount: int = 0       # millimes, frozen at creation
    status: str = DeliveryStatus.PENDING.value
    circuit_id: str | None = None
    assigned_to: str | None = None
    planned_date: datetime | None = None
    delivery_date: datetime | None = None
    completed_at: datetime | None = None
    proof_photo: str | None = None
    notes: str | None = None
    created_by: str | None = None
    payment_type: str = SessionDeliveryType.CASH.value
    client_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def compute_total(lines: list[DeliveryLine]) -> int:
    return sum(line.total for line in lines)


@dataclass
class DeliveryFilter:
    client_id: str | None = None
    circuit_id: str | None = None
    status: str | None = None
    from_date: datetime | None = None   # planned_date >= from_date
    to_date: datetime | None = None     # planned_date <= to_date
    before: datetime | None = None      # planned_date < before (single-day filter)
