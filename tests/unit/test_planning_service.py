"""Unit tests for PlanningService."""

from datetime import date

import pytest

from src.rb_circuit.domain.models import Circuit
from src.rb_common.errors import (
    CircuitNotFoundError,
    PlanningExistsError,
    PlanningNotFoundError,
)
from src.rb_planning.application.schemas import (
    CreatePlanningRequest,
    PlanningStopIn,
    UpdatePlanningRequest,
)
from src.rb_planning.application.service import PlanningService
from src.rb_planning.domain.models import Planning, PlanningFilter
from tests.fakes import FakeCircuitRepo, FakeDb, FakePlanningRepo

SALES = "commercial-1"
DAY = date(2026, 5, 4)


class _NoPrecheckRepo(FakePlanningRepo):
    """Another request books the same day after the pre-check ran."""

    async def find_for_commercial(
        self, db: FakeDb, day: date, commercial: str
    ) -> Planning | None:
        return None


@pytest.fixture
def db() -> FakeDb:
    db = FakeDb()
    db.seed("circuits", "k1", Circuit(id="k1", name="Bizerte Est"))
    return db


@pytest.fixture
def service() -> PlanningService:
    return PlanningService(repo=FakePlanningRepo(), circuit_repo=FakeCircuitRepo())


def _create(**overrides: object) -> CreatePlanningRequest:
    data: dict = {"date": DAY, "circuit_id": "k1", "title": "Tournee lundi", "commercial": SALES}
    data.update(overrides)
    return CreatePlanningRequest(**data)


class TestCreate:
    async def test_created_with_circuit_name(self, service: PlanningService, db: FakeDb) -> None:
        created = await service.create_planning(
            db,
            _create(
                stops=[
                    PlanningStopIn(client_id="c2", order=2, action="payment"),
                    PlanningStopIn(client_id="c1", order=1, action="delivery"),
                ],
                clients=["c1", "c2"],
            ),
            "admin-1",
        )
        assert created.circuit_name == "Bizerte Est"
        assert created.date == "2026-05-04"
        assert created.status == "scheduled"
        assert [s.client_id for s in created.stops] == ["c1", "c2"]
        assert db.commits == 1

    async def test_unknown_circuit_rejected(self, service: PlanningService, db: FakeDb) -> None:
        with pytest.raises(CircuitNotFoundError):
            await service.create_planning(db, _create(circuit_id="ghost"), "admin-1")
        assert db.committed.get("plannings", {}) == {}

    async def test_second_plan_same_day_conflicts(
        self, service: PlanningService, db: FakeDb
    ) -> None:
        await service.create_planning(db, _create(), "admin-1")
        with pytest.raises(PlanningExistsError) as exc:
            await service.create_planning(db, _create(title="Again"), "admin-1")
        assert exc.value.http_status == 409

    async def test_concurrent_booking_reported_as_conflict(self, db: FakeDb) -> None:
        service = PlanningService(repo=_NoPrecheckRepo(), circuit_repo=FakeCircuitRepo())
        await service.create_planning(db, _create(), "admin-1")
        with pytest.raises(PlanningExistsError):
            await service.create_planning(db, _create(title="Again"), "admin-1")
        assert db.rollbacks == 1
        assert len(db.committed["plannings"]) == 1

    async def test_unassigned_plans_may_share_a_day(
        self, service: PlanningService, db: FakeDb
    ) -> None:
        await service.create_planning(db, _create(commercial=None), "admin-1")
        await service.create_planning(db, _create(commercial=None), "admin-1")
        assert len(db.committed["plannings"]) == 2


class TestQueries:
    async def test_by_date_returns_only_that_day(
        self, service: PlanningService, db: FakeDb
    ) -> None:
        await service.create_planning(db, _create(), "admin-1")
        await service.create_planning(db, _create(commercial="commercial-2"), "admin-1")
        await service.create_planning(db, _create(date=date(2026, 5, 5)), "admin-1")
        rows = await service.list_by_date(db, DAY)
        assert len(rows) == 2
        assert {r["commercial"] for r in rows} == {SALES, "commercial-2"}

    async def test_list_newest_first(self, service: PlanningService, db: FakeDb) -> None:
        await service.create_planning(db, _create(date=date(2026, 5, 1)), "admin-1")
        await service.create_planning(db, _create(date=date(2026, 5, 9)), "admin-1")
        page = await service.list_plannings(db, 1, 20, PlanningFilter(commercial=SALES))
        assert [r["date"] for r in page.results] == ["2026-05-09", "2026-05-01"]
        assert page.total == 2

    async def test_missing_planning(self, service: PlanningService, db: FakeDb) -> None:
        with pytest.raises(PlanningNotFoundError):
            await service.get_planning(db, "nope")


class TestUpdateDelete:
    async def test_move_onto_booked_day_conflicts(
        self, service: PlanningService, db: FakeDb
    ) -> None:
        await service.create_planning(db, _create(), "admin-1")
        other = await service.create_planning(db, _create(date=date(2026, 5, 6)), "admin-1")
        with pytest.raises(PlanningExistsError):
            await service.update_planning(db, other.id, UpdatePlanningRequest(date=DAY))
        assert db.committed_row("plannings", other.id).date == date(2026, 5, 6)

    async def test_update_own_day_is_not_a_conflict(
        self, service: PlanningService, db: FakeDb
    ) -> None:
        created = await service.create_planning(db, _create(), "admin-1")
        updated = await service.update_planning(
            db, created.id, UpdatePlanningRequest(status="completed", notes="done")
        )
        assert updated.status == "completed"
        assert updated.notes == "done"
        assert updated.date == "2026-05-04"

    async def test_clearing_circuit(self, service: PlanningService, db: FakeDb) -> None:
        created = await service.create_planning(db, _create(), "admin-1")
        updated = await service.update_planning(
            db, created.id, UpdatePlanningRequest(circuit_id="")
        )
        assert updated.circuit_id == ""
        assert db.committed_row("plannings", created.id).circuit_id is None

    async def test_delete(self, service: PlanningService, db: FakeDb) -> None:
        created = await service.create_planning(db, _create(), "admin-1")
        await service.delete_planning(db, created.id)
        assert db.committed_row("plannings", created.id) is None
        with pytest.raises(PlanningNotFoundError):
            await service.delete_planning(db, created.id)
