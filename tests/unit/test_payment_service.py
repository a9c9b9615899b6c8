"""Unit tests for PaymentService: guarded debt decrement and reversals."""

from datetime import datetime, timezone

import pytest

from src.rb_client.domain.models import Client
from src.rb_common.errors import (
    AmountExceedsDebtError,
    BadRequestError,
    ClientNotFoundError,
    PaymentCancelledError,
    PaymentNotFoundError,
)
from src.rb_payment.application.schemas import CreatePaymentRequest, UpdatePaymentRequest
from src.rb_payment.application.service import PaymentService
from src.rb_payment.domain.models import PaymentFilter
from src.rb_session.application.ledger import SessionPoster
from src.rb_session.application.service import SessionService
from tests.fakes import FakeClientRepo, FakeDb, FakePaymentRepo, FakeSessionRepo

AGENT = "agent-1"


@pytest.fixture
def db() -> FakeDb:
    db = FakeDb()
    db.seed("clients", "c1", Client(id="c1", name="Lavage Nour", total_debt=300))
    return db


@pytest.fixture
def session_repo() -> FakeSessionRepo:
    return FakeSessionRepo()


@pytest.fixture
def service(session_repo: FakeSessionRepo) -> PaymentService:
    return PaymentService(
        repo=FakePaymentRepo(),
        client_repo=FakeClientRepo(),
        poster=SessionPoster(repo=session_repo),
    )


def _request(amount: int, **overrides: object) -> CreatePaymentRequest:
    data: dict = {
        "client_id": "c1",
        "amount": amount,
        "paid_at": datetime(2026, 5, 10, 14, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return CreatePaymentRequest(**data)


class TestCreatePayment:
    async def test_amount_above_debt_is_rejected(
        self, service: PaymentService, db: FakeDb
    ) -> None:
        with pytest.raises(AmountExceedsDebtError) as exc:
            await service.create_payment(db, _request(500), AGENT)
        assert exc.value.code == "AMOUNT_EXCEEDS_DEBT"
        assert "0.500 TND" in exc.value.message
        assert "0.300 TND" in exc.value.message
        assert db.committed_row("clients", "c1").total_debt == 300
        assert db.committed.get("payments", {}) == {}

    async def test_exact_debt_clears_balance(self, service: PaymentService, db: FakeDb) -> None:
        created = await service.create_payment(db, _request(300), AGENT)
        assert created.amount == 300
        assert created.client_name == "Lavage Nour"
        assert created.received_by == AGENT
        assert db.committed_row("clients", "c1").total_debt == 0

    async def test_second_payment_after_clearing_fails(
        self, service: PaymentService, db: FakeDb
    ) -> None:
        await service.create_payment(db, _request(200), AGENT)
        with pytest.raises(AmountExceedsDebtError):
            await service.create_payment(db, _request(200), AGENT)
        assert db.committed_row("clients", "c1").total_debt == 100

    async def test_unknown_client(self, service: PaymentService, db: FakeDb) -> None:
        with pytest.raises(ClientNotFoundError):
            await service.create_payment(db, _request(10, client_id="nobody"), AGENT)

    async def test_cannot_create_cancelled(self, service: PaymentService, db: FakeDb) -> None:
        with pytest.raises(BadRequestError):
            await service.create_payment(db, _request(10, status="cancelled"), AGENT)

    async def test_pending_payment_also_reduces_debt(
        self, service: PaymentService, db: FakeDb
    ) -> None:
        await service.create_payment(db, _request(100, status="pending"), AGENT)
        assert db.committed_row("clients", "c1").total_debt == 200

    async def test_cash_payment_posts_to_receivers_session(
        self, service: PaymentService, session_repo: FakeSessionRepo, db: FakeDb
    ) -> None:
        started = await SessionService(repo=session_repo).start_session(db, AGENT)
        await service.create_payment(db, _request(120), AGENT)
        assert db.committed_row("work_sessions", started["id"]).total_cash_collected == 120

    async def test_transfer_posts_as_credit_collected(
        self, service: PaymentService, session_repo: FakeSessionRepo, db: FakeDb
    ) -> None:
        started = await SessionService(repo=session_repo).start_session(db, AGENT)
        await service.create_payment(db, _request(80, method="transfer"), AGENT)
        session = db.committed_row("work_sessions", started["id"])
        assert session.total_credit_collected == 80
        assert session.total_cash_collected == 0

    async def test_received_by_never_reaches_another_agents_session(
        self, service: PaymentService, session_repo: FakeSessionRepo, db: FakeDb
    ) -> None:
        sessions = SessionService(repo=session_repo)
        theirs = await sessions.start_session(db, "agent-2")
        mine = await sessions.start_session(db, AGENT)
        created = await service.create_payment(db, _request(250, received_by="agent-2"), AGENT)

        assert created.received_by == "agent-2"
        other = db.committed_row("work_sessions", theirs["id"])
        assert other.total_cash_collected == 0
        assert other.total_credit_collected == 0
        assert db.table("ws_payments", list)[0].session_id == mine["id"]
        assert db.committed_row("work_sessions", mine["id"]).total_cash_collected == 250

    async def test_received_by_without_caller_session_is_noop(
        self, service: PaymentService, session_repo: FakeSessionRepo, db: FakeDb
    ) -> None:
        theirs = await SessionService(repo=session_repo).start_session(db, "agent-2")
        await service.create_payment(db, _request(250, received_by="agent-2"), AGENT)
        assert db.committed_row("work_sessions", theirs["id"]).total_cash_collected == 0
        assert db.committed_row("clients", "c1").total_debt == 50


class TestUpdateAndDelete:
    async def test_delete_restores_debt(self, service: PaymentService, db: FakeDb) -> None:
        created = await service.create_payment(db, _request(300), AGENT)
        await service.delete_payment(db, created.id)
        assert db.committed_row("clients", "c1").total_debt == 300
        with pytest.raises(PaymentNotFoundError):
            await service.get_payment(db, created.id)

    async def test_cancel_restores_debt_once(self, service: PaymentService, db: FakeDb) -> None:
        created = await service.create_payment(db, _request(300), AGENT)
        cancelled = await service.update_payment(
            db, created.id, UpdatePaymentRequest(status="cancelled")
        )
        assert cancelled.status == "cancelled"
        assert db.committed_row("clients", "c1").total_debt == 300
        await service.delete_payment(db, created.id)
        assert db.committed_row("clients", "c1").total_debt == 300

    async def test_cancelled_payment_cannot_be_revived(
        self, service: PaymentService, db: FakeDb
    ) -> None:
        created = await service.create_payment(db, _request(100), AGENT)
        await service.update_payment(db, created.id, UpdatePaymentRequest(status="cancelled"))
        with pytest.raises(PaymentCancelledError):
            await service.update_payment(
                db, created.id, UpdatePaymentRequest(status="completed")
            )

    async def test_update_notes_and_method(self, service: PaymentService, db: FakeDb) -> None:
        created = await service.create_payment(db, _request(100), AGENT)
        updated = await service.update_payment(
            db, created.id, UpdatePaymentRequest(notes="receipt #12", method="check")
        )
        assert updated.notes == "receipt #12"
        assert updated.method == "check"
        assert db.committed_row("clients", "c1").total_debt == 200


class TestListing:
    async def test_summary_splits_completed_and_pending(
        self, service: PaymentService, db: FakeDb
    ) -> None:
        await service.create_payment(db, _request(100), AGENT)
        await service.create_payment(db, _request(50, status="pending"), AGENT)
        data = await service.list_payments(db, 1, 20, PaymentFilter(client_id="c1"))
        assert data["summary"] == {"totalCollected": 100, "pending": 50}
        assert data["total"] == 2
        assert data["results"][0]["amountDisplay"].endswith("TND")

    async def test_by_date_range(self, service: PaymentService, db: FakeDb) -> None:
        await service.create_payment(db, _request(100), AGENT)
        rows = await service.list_by_date_range(
            db,
            datetime(2026, 5, 10, tzinfo=timezone.utc),
            datetime(2026, 5, 11, tzinfo=timezone.utc),
        )
        assert len(rows) == 1
        assert await service.list_by_date_range(
            db, datetime(2026, 6, 1, tzinfo=timezone.utc), None
        ) == []

    async def test_by_client(self, service: PaymentService, db: FakeDb) -> None:
        await service.create_payment(db, _request(100), AGENT)
        assert len(await service.list_by_client(db, "c1")) == 1
