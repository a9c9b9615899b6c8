"""Pydantic schemas for rb_client API."""

from datetime import datetime

from pydantic import EmailStr, Field

from src.rb_client.domain.models import Client
from src.rb_common.enums import ClientType, Segment
from src.rb_common.millimes import millimes_to_display
from src.rb_common.schemas import CamelModel


class AddressIn(CamelModel):
    street: str | None = None
    city: str | None = None
    governorate: str | None = None
    postal_code: str | None = None


class CreateClientRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    shop_name: str | None = Field(None, max_length=200)
    code: str | None = Field(None, max_length=64)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=32)
    address: AddressIn | None = None
    type: ClientType = ClientType.MECHANIC
    segment: Segment = Segment.STANDARD
    circuit_id: str | None = None
    is_active: bool = True
    archived: bool = False
    notes: str | None = None


class UpdateClientRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    shop_name: str | None = None
    code: str | None = Field(None, max_length=64)
    email: EmailStr | None = None
    phone: str | None = None
    address: AddressIn | None = None
    type: ClientType | None = None
    segment: Segment | None = None
    circuit_id: str | None = None
    total_orders: int | None = Field(None, ge=0)
    last_visit: datetime | None = None
    is_active: bool | None = None
    archived: bool | None = None
    notes: str | None = None


class ClientResponse(CamelModel):
    id: str
    name: str
    shop_name: str | None
    code: str | None
    type: str
    segment: str
    circuit_id: str | None
    address: str | None
    phone: str | None
    email: str | None
    total_debt: int
    total_debt_display: str
    total_orders: int
    last_visit: str | None
    archived: bool

    @classmethod
    def from_domain(cls, c: Client) -> "ClientResponse":
        return cls(
            id=c.id,
            name=c.name,
            shop_name=c.shop_name,
            code=c.code,
            type=c.type,
            segment=c.segment,
            circuit_id=c.circuit_id,
            address=c.address.as_line(),
            phone=c.phone,
            email=c.email,
            total_debt=c.total_debt,
            total_debt_display=millimes_to_display(c.total_debt),
            total_orders=c.total_orders,
            last_visit=c.last_visit.date().isoformat() if c.last_visit else None,
            archived=c.archived or not c.is_active,
        )
