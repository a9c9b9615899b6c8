"""Domain models for rb_client — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Address:
    street: str | None = None
    city: str | None = None
    governorate: str | None = None
    postal_code: str | None = None

    def as_line(self) -> str | None:
        parts = [p for p in (self.street, self.city, self.governorate, self.postal_code) if p]
        return ", ".join(parts) if parts else None


@dataclass
class Client:
    id: str
    name: str
    shop_name: str | None = None
    code: str | None = None
    email: str | None = None
    phone: str | None = None
    address: Address = field(default_factory=Address)
    type: str = "mechanic"
    segment: str = "STANDARD"
    circuit_id: str | None = None
    total_debt: int = 0          # millimes, signed running balance
    total_orders: int = 0
    last_visit: datetime | None = None
    is_active: bool = True
    archived: bool = False
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ClientFilter:
    owner_id: str | None = None   # set for non-admin callers
    search: str | None = None
    type: str | None = None
    segment: str | None = None
    circuit_id: str | None = None
    archived: bool | None = None
    is_active: bool | None = None
    sort: str | None = None
