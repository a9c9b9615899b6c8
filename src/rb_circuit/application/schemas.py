"""Pydantic schemas for rb_circuit API."""

from pydantic import Field

from src.rb_circuit.domain.models import Circuit, CircuitStop
from src.rb_common.schemas import CamelModel


class StopIn(CamelModel):
    client_id: str
    order: int = Field(..., ge=0)
    lat: float
    lng: float

    def to_domain(self) -> CircuitStop:
        return CircuitStop(client_id=self.client_id, order=self.order, lat=self.lat, lng=self.lng)


class CreateCircuitRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str | None = Field(None, max_length=64)
    zone: str | None = Field(None, max_length=100)
    region: str | None = Field(None, max_length=100)
    client_ids: list[str] = Field(default_factory=list)
    stops: list[StopIn] = Field(default_factory=list)
    estimated_duration: int = Field(0, ge=0, description="Minutes")
    assigned_to: str | None = None
    description: str | None = None
    is_active: bool = True


class UpdateCircuitRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    code: str | None = Field(None, max_length=64)
    zone: str | None = None
    region: str | None = None
    client_ids: list[str] | None = None
    stops: list[StopIn] | None = None
    estimated_duration: int | None = Field(None, ge=0)
    assigned_to: str | None = None
    description: str | None = None
    is_active: bool | None = None


class StopOut(CamelModel):
    client_id: str
    order: int
    lat: float
    lng: float


class CircuitResponse(CamelModel):
    id: str
    name: str
    code: str | None
    zone: str | None
    region: str
    client_ids: list[str]
    stops: list[StopOut]
    estimated_duration: int
    assigned_to: str | None
    description: str | None
    is_active: bool

    @classmethod
    def from_domain(cls, c: Circuit) -> "CircuitResponse":
        return cls(
            id=c.id,
            name=c.name,
            code=c.code,
            zone=c.zone,
            # region falls back to zone
            region=c.region or c.zone or "",
            client_ids=c.client_ids,
            stops=[
                StopOut(client_id=s.client_id, order=s.order, lat=s.lat, lng=s.lng)
                for s in c.ordered_stops()
            ],
            estimated_duration=c.estimated_duration,
            assigned_to=c.assigned_to,
            description=c.description,
            is_active=c.is_active,
        )
