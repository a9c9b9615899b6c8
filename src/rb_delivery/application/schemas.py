"""Pydantic schemas for rb_delivery API."""

from datetime import datetime

from pydantic import Field

from src.rb_common.enums import SessionDeliveryType
from src.rb_common.millimes import millimes_to_display
from src.rb_common.schemas import CamelModel
from src.rb_delivery.domain.models import Delivery


class DeliveryLineIn(CamelModel):
    product_id: str
    quantity: int = Field(..., gt=0)
    unit_price: int | None = Field(None, ge=0, description="Defaults to the product price")


class CreateDeliveryRequest(CamelModel):
    client_id: str
    circuit_id: str | None = None
    items: list[DeliveryLineIn] = Field(default_factory=list)
    assigned_to: str | None = None
    planned_date: datetime | None = None
    proof_photo: str | None = None
    notes: str | None = None
    payment_type: SessionDeliveryType = SessionDeliveryType.CASH


class UpdateDeliveryRequest(CamelModel):
    circuit_id: str | None = None
    assigned_to: str | None = None
    planned_date: datetime | None = None
    proof_photo: str | None = None
    notes: str | None = None


class UpdateStatusRequest(CamelModel):
    status: str
    completed_at: datetime | None = None
    delivery_date: datetime | None = None
    proof_photo: str | None = None


class DeliveryLineOut(CamelModel):
    product_id: str
    qty: int
    unit_price: int
    line_total: int


class DeliveryResponse(CamelModel):
    id: str
    client_id: str
    client_name: str
    circuit_id: str | None
    date: str
    planned_date: datetime | None
    status: str
    items: list[DeliveryLineOut]
    total: int
    total_display: str
    assigned_to: str | None
    delivery_date: datetime | None
    completed_at: datetime | None
    proof_photo: str | None
    notes: str | None
    payment_type: str
    created_by: str | None

    @classmethod
    def from_domain(cls, d: Delivery) -> "DeliveryResponse":
        return cls(
            id=d.id,
            client_id=d.client_id,
            client_name=d.client_name or "",
            circuit_id=d.circuit_id,
            date=d.planned_date.date().isoformat() if d.planned_date else "",
            planned_date=d.planned_date,
            status=d.status,
            items=[
                DeliveryLineOut(
                    product_id=line.product_id,
                    qty=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.total,
                )
                for line in d.lines
            ],
            total=d.total_amount,
            total_display=millimes_to_display(d.total_amount),
            assigned_to=d.assigned_to,
            delivery_date=d.delivery_date,
            completed_at=d.completed_at,
            proof_photo=d.proof_photo,
            notes=d.notes,
            payment_type=d.payment_type,
            created_by=d.created_by,
        )
