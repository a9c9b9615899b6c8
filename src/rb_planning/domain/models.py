"""Domain models for rb_planning — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass
class PlanningStop:
    client_id: str
    order: int = 0
    action: str = "task"


@dataclass
class Planning:
    id: str
    date: date
    circuit_id: str | None = None
    circuit_name: str | None = None   # joined from circuits, read-only
    title: str | None = None
    time: str | None = None
    status: str = "scheduled"
    stops: list[PlanningStop] = field(default_factory=list)
    commercial: str | None = None
    client_ids: list[str] = field(default_factory=list)
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class PlanningFilter:
    commercial: str | None = None
    from_date: date | None = None
    to_date: date | None = None   # inclusive
