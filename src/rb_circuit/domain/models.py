"""Domain models for rb_circuit — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CircuitStop:
    client_id: str
    order: int = 0
    lat: float = 0.0
    lng: float = 0.0


@dataclass
class Circuit:
    id: str
    name: str
    code: str | None = None
    zone: str | None = None
    region: str | None = None
    client_ids: list[str] = field(default_factory=list)
    stops: list[CircuitStop] = field(default_factory=list)
    estimated_duration: int = 0   # minutes
    assigned_to: str | None = None
    description: str | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def ordered_stops(self) -> list[CircuitStop]:
        return sorted(self.stops, key=lambda s: s.order)


@dataclass
class CircuitFilter:
    owner_id: str | None = None   # set for non-admin callers
    search: str | None = None
    zone: str | None = None
    is_active: bool | None = None
