"""HTTP-level tests: auth guards, envelope shape and error mapping.

Services are swapped for ones backed by the in-memory fakes and
get_db_session yields a FakeDb, so no database or Redis is needed.
"""

import uuid
from collections.abc import AsyncGenerator, Iterator

import pytest
from httpx import AsyncClient

from src.main import app
from src.rb_circuit.application.service import CircuitService
from src.rb_client.domain.models import Client
from src.rb_common.database import get_db_session
from src.rb_gateway.auth.dependencies import get_current_user
from src.rb_gateway.user.db_models import UserModel
from src.rb_payment.application.service import PaymentService
from src.rb_planning.application.service import PlanningService
from src.rb_product.application.service import ProductApplicationService
from src.rb_session.application.ledger import SessionPoster
from src.rb_session.application.service import SessionService
from tests.fakes import (
    FakeCircuitRepo,
    FakeClientRepo,
    FakeDb,
    FakePaymentRepo,
    FakePlanningRepo,
    FakeProductRepo,
    FakeSessionRepo,
)


def _user(role: str) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = f"{role.lower()}@reborn.tn"
    user.role = role
    user.is_active = True
    return user


@pytest.fixture
def fake_db() -> FakeDb:
    db = FakeDb()
    db.seed("clients", "c1", Client(id="c1", name="Garage Ali", total_debt=300))
    return db


@pytest.fixture
def wired(fake_db: FakeDb, monkeypatch: pytest.MonkeyPatch) -> Iterator[FakeDb]:
    sessions = FakeSessionRepo()
    monkeypatch.setattr(
        "src.rb_session.api.router._service", SessionService(repo=sessions)
    )
    monkeypatch.setattr(
        "src.rb_payment.api.router._service",
        PaymentService(
            repo=FakePaymentRepo(),
            client_repo=FakeClientRepo(),
            poster=SessionPoster(repo=sessions),
        ),
    )

    async def _db() -> AsyncGenerator[FakeDb, None]:
        yield fake_db

    monkeypatch.setattr(
        "src.rb_circuit.api.router._service",
        CircuitService(repo=FakeCircuitRepo(), client_repo=FakeClientRepo()),
    )
    monkeypatch.setattr(
        "src.rb_planning.api.router._service",
        PlanningService(repo=FakePlanningRepo(), circuit_repo=FakeCircuitRepo()),
    )
    monkeypatch.setattr(
        "src.rb_product.api.router._service", ProductApplicationService(FakeProductRepo())
    )

    app.dependency_overrides[get_db_session] = _db
    yield fake_db
    app.dependency_overrides.clear()


def _login_as(role: str) -> UserModel:
    user = _user(role)

    async def _current() -> UserModel:
        return user

    app.dependency_overrides[get_current_user] = _current
    return user


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_missing_token_is_unauthorized(client: AsyncClient, wired: FakeDb) -> None:
    resp = await client.get("/api/v1/work-sessions/active")
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["requestId"] == resp.headers["X-Request-ID"]


class TestWorkSessionRoutes:
    async def test_start_then_conflict(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        first = await client.post("/api/v1/work-sessions/start", json={})
        assert first.status_code == 201
        session = first.json()["data"]["session"]
        assert session["status"] == "ACTIVE"
        assert session["totalRevenue"] == 0

        second = await client.post("/api/v1/work-sessions/start", json={})
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "ACTIVE_SESSION_ALREADY_EXISTS"

    async def test_end_without_session(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        resp = await client.post("/api/v1/work-sessions/end", json={})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NO_ACTIVE_SESSION"

    async def test_active_is_null_without_session(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("COMMERCIAL")
        resp = await client.get("/api/v1/work-sessions/active")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"session": None}

    async def test_expense_flow(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        no_session = await client.post(
            "/api/v1/work-sessions/expenses", json={"amount": 500, "label": "fuel"}
        )
        assert no_session.status_code == 400

        await client.post("/api/v1/work-sessions/start", json={})
        resp = await client.post(
            "/api/v1/work-sessions/expenses", json={"amount": 500, "label": "fuel"}
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["session"]["totalExpenses"] == 500

    async def test_expense_amount_must_be_integer(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("DELIVERY")
        resp = await client.post(
            "/api/v1/work-sessions/expenses", json={"amount": "lots", "label": "fuel"}
        )
        assert resp.status_code == 422
        body = resp.json()["error"]
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "amount"

    async def test_recap_of_other_agent_forbidden(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("DELIVERY")
        started = await client.post("/api/v1/work-sessions/start", json={})
        sid = started.json()["data"]["session"]["id"]

        _login_as("DELIVERY")
        resp = await client.get(f"/api/v1/work-sessions/{sid}")
        assert resp.status_code == 403

    async def test_history_envelope(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        await client.post("/api/v1/work-sessions/start", json={})
        resp = await client.get("/api/v1/work-sessions/history", params={"limit": 500})
        data = resp.json()["data"]
        assert set(data) == {"results", "page", "limit", "total"}
        assert data["limit"] == 100
        assert data["total"] == 1


class TestPaymentRoutes:
    async def test_delivery_role_cannot_record_payments(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("DELIVERY")
        resp = await client.post("/api/v1/payments", json={"clientId": "c1", "amount": 100})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    async def test_overpayment_rejected_then_exact_accepted(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("COMMERCIAL")
        await client.post("/api/v1/work-sessions/start", json={})

        too_much = await client.post("/api/v1/payments", json={"clientId": "c1", "amount": 500})
        assert too_much.status_code == 400
        assert too_much.json()["error"]["code"] == "AMOUNT_EXCEEDS_DEBT"

        ok = await client.post("/api/v1/payments", json={"clientId": "c1", "amount": 300})
        assert ok.status_code == 201
        assert ok.json()["data"]["amountDisplay"] == "0.300 TND"
        assert wired.committed_row("clients", "c1").total_debt == 0

        active = await client.get("/api/v1/work-sessions/active")
        assert active.json()["data"]["session"]["totalCash"] == 300

    async def test_non_positive_amount_is_validation_error(
        self, client: AsyncClient, wired: FakeDb
    ) -> None:
        _login_as("ADMIN")
        resp = await client.post("/api/v1/payments", json={"clientId": "c1", "amount": 0})
        assert resp.status_code == 422


class TestCircuitRoutes:
    async def test_foreign_circuit_is_not_found(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("COMMERCIAL")
        created = await client.post("/api/v1/circuits", json={"name": "Tunis Nord", "code": "TN"})
        assert created.status_code == 201
        cid = created.json()["data"]["id"]

        _login_as("COMMERCIAL")
        resp = await client.get(f"/api/v1/circuits/{cid}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    async def test_only_admin_deletes(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("COMMERCIAL")
        cid = (await client.post("/api/v1/circuits", json={"name": "Sfax"})).json()["data"]["id"]
        assert (await client.delete(f"/api/v1/circuits/{cid}")).status_code == 403

        _login_as("ADMIN")
        resp = await client.delete(f"/api/v1/circuits/{cid}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"deleted": True}

    async def test_clients_of_circuit(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("ADMIN")
        cid = (await client.post("/api/v1/circuits", json={"name": "Sousse"})).json()["data"]["id"]
        wired.seed("clients", "c2", Client(id="c2", name="Auto Sami", circuit_id=cid))
        resp = await client.get(f"/api/v1/circuits/{cid}/clients")
        assert [c["id"] for c in resp.json()["data"]] == ["c2"]


class TestPlanningRoutes:
    async def test_by_date_requires_date(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        resp = await client.get("/api/v1/planning/by-date")
        assert resp.status_code == 422

    async def test_same_day_twice_conflicts(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("COMMERCIAL")
        body = {"date": "2026-05-04", "commercial": "commercial-1", "title": "Lundi"}
        assert (await client.post("/api/v1/planning", json=body)).status_code == 201
        again = await client.post("/api/v1/planning", json=body)
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "PLANNING_EXISTS"

        day = await client.get("/api/v1/planning/by-date", params={"date": "2026-05-04"})
        assert [p["title"] for p in day.json()["data"]] == ["Lundi"]


class TestCategoryRoutes:
    async def test_categories_envelope(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        resp = await client.get("/api/v1/categories")
        assert resp.status_code == 200
        results = resp.json()["data"]["results"]
        assert results[0] == {"id": "degreasing", "label": "Degreasing"}


class TestUserRoutes:
    async def test_me_for_any_role(self, client: AsyncClient, wired: FakeDb) -> None:
        user = _login_as("DELIVERY")
        resp = await client.get("/api/v1/users/me")
        assert resp.status_code == 200
        body = resp.json()["data"]["user"]
        assert body["id"] == str(user.id)
        assert "passwordHash" not in body

    async def test_delivery_cannot_list_users(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("DELIVERY")
        assert (await client.get("/api/v1/users")).status_code == 403

    async def test_register_is_admin_only(self, client: AsyncClient, wired: FakeDb) -> None:
        _login_as("COMMERCIAL")
        resp = await client.post(
            "/api/v1/auth/register",
            json={"email": "new@reborn.tn", "password": "Pass1word", "role": "DELIVERY"},
        )
        assert resp.status_code == 403
