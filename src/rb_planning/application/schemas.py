"""Pydantic schemas for rb_planning API."""

from datetime import date

from pydantic import Field

from src.rb_common.enums import PlanningStatus, StopAction
from src.rb_common.schemas import CamelModel
from src.rb_planning.domain.models import Planning, PlanningStop


class PlanningStopIn(CamelModel):
    client_id: str
    order: int = Field(..., ge=0)
    action: StopAction = StopAction.TASK

    def to_domain(self) -> PlanningStop:
        return PlanningStop(client_id=self.client_id, order=self.order, action=self.action.value)


class CreatePlanningRequest(CamelModel):
    circuit_id: str | None = None
    title: str | None = Field(None, max_length=200)
    plan_date: date = Field(..., alias="date")
    time: str | None = Field(None, max_length=10)
    status: PlanningStatus = PlanningStatus.SCHEDULED
    stops: list[PlanningStopIn] = Field(default_factory=list)
    commercial: str | None = None
    clients: list[str] = Field(default_factory=list)
    notes: str | None = None


class UpdatePlanningRequest(CamelModel):
    circuit_id: str | None = None
    title: str | None = Field(None, max_length=200)
    plan_date: date | None = Field(None, alias="date")
    time: str | None = Field(None, max_length=10)
    status: PlanningStatus | None = None
    stops: list[PlanningStopIn] | None = None
    commercial: str | None = None
    clients: list[str] | None = None
    notes: str | None = None


class PlanningStopOut(CamelModel):
    client_id: str
    order: int
    action: str


class PlanningResponse(CamelModel):
    id: str
    circuit_id: str
    circuit_name: str | None
    title: str
    date: str
    time: str | None
    status: str
    stops: list[PlanningStopOut]
    commercial: str | None
    clients: list[str]
    notes: str | None

    @classmethod
    def from_domain(cls, p: Planning) -> "PlanningResponse":
        return cls(
            id=p.id,
            circuit_id=p.circuit_id or "",
            circuit_name=p.circuit_name,
            title=p.title or "",
            date=p.date.isoformat(),
            time=p.time,
            status=p.status,
            stops=[
                PlanningStopOut(client_id=s.client_id, order=s.order, action=s.action)
                for s in sorted(p.stops, key=lambda s: s.order)
            ],
            commercial=p.commercial,
            clients=p.client_ids,
            notes=p.notes,
        )
