"""Domain models for rb_payment — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.rb_common.enums import PaymentMethod, PaymentStatus


@dataclass
class Payment:
    id: str
    client_id: str
    amount: int                 # millimes, > 0
    currency: str = "TND"
    method: str = PaymentMethod.CASH.value
    status: str = PaymentStatus.COMPLETED.value
    delivery_id: str | None = None
    paid_at: datetime | None = None
    received_by: str | None = None
    notes: str | None = None
    created_by: str | None = None
    client_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class PaymentFilter:
    client_id: str | None = None
    status: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None


@dataclass
class PaymentSummary:
    total_collected: int = 0    # completed payments
    pending: int = 0            # pending payments
