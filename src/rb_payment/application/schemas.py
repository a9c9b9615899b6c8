"""Pydantic schemas for rb_payment API."""

from datetime import datetime

from pydantic import Field

from src.rb_common.enums import PaymentMethod, PaymentStatus
from src.rb_common.millimes import millimes_to_display
from src.rb_common.schemas import CamelModel
from src.rb_payment.domain.models import Payment


class CreatePaymentRequest(CamelModel):
    client_id: str
    delivery_id: str | None = None
    amount: int = Field(..., gt=0, description="Millimes")
    currency: str = Field("TND", max_length=3)
    method: PaymentMethod = PaymentMethod.CASH
    status: PaymentStatus = PaymentStatus.COMPLETED
    paid_at: datetime | None = None
    received_by: str | None = None
    notes: str | None = None


class UpdatePaymentRequest(CamelModel):
    delivery_id: str | None = None
    currency: str | None = Field(None, max_length=3)
    method: PaymentMethod | None = None
    status: PaymentStatus | None = None
    paid_at: datetime | None = None
    notes: str | None = None


class PaymentResponse(CamelModel):
    id: str
    client_id: str
    client_name: str
    delivery_id: str | None
    amount: int
    amount_display: str
    currency: str
    date: str
    paid_at: datetime | None
    method: str
    status: str
    received_by: str | None
    notes: str | None
    created_by: str | None

    @classmethod
    def from_domain(cls, p: Payment) -> "PaymentResponse":
        return cls(
            id=p.id,
            client_id=p.client_id,
            client_name=p.client_name or "",
            delivery_id=p.delivery_id,
            amount=p.amount,
            amount_display=millimes_to_display(p.amount),
            currency=p.currency,
            date=p.paid_at.date().isoformat() if p.paid_at else "",
            paid_at=p.paid_at,
            method=p.method,
            status=p.status,
            received_by=p.received_by,
            notes=p.notes,
            created_by=p.created_by,
        )
