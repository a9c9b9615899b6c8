"""Unit tests for SessionLedger posts and the best-effort SessionPoster."""

import logging

import pytest

from src.rb_common.errors import (
    ExpenseLabelRequiredError,
    InvalidAmountError,
    InvalidDeliveryTypeError,
    InvalidPaymentMethodError,
    SessionNotActiveError,
)
from src.rb_session.application.ledger import (
    SessionLedger,
    SessionPoster,
    session_method_for,
    validate_amount,
)
from src.rb_session.application.service import SessionService
from tests.fakes import FakeDb, FakeSessionRepo

AGENT = "agent-1"


@pytest.fixture
def db() -> FakeDb:
    return FakeDb()


@pytest.fixture
def repo() -> FakeSessionRepo:
    return FakeSessionRepo()


@pytest.fixture
def ledger(repo: FakeSessionRepo) -> SessionLedger:
    return SessionLedger(repo)


@pytest.fixture
async def session_id(repo: FakeSessionRepo, db: FakeDb) -> str:
    started = await SessionService(repo=repo).start_session(db, AGENT)
    return started["id"]


class TestValidateAmount:
    @pytest.mark.parametrize("value", [-1, 1.5, "10", None, True, False])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(InvalidAmountError):
            validate_amount(value)

    def test_zero_is_allowed(self) -> None:
        assert validate_amount(0) == 0


class TestSessionMethodFor:
    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("cash", ("CASH", "CASH")),
            ("check", ("CREDIT", "CHEQUE")),
            ("transfer", ("CREDIT", "TRANSFER")),
            ("card", ("CREDIT", "TRANSFER")),
            ("other", ("CREDIT", "TRANSFER")),
        ],
    )
    def test_mapping(self, method: str, expected: tuple[str, str]) -> None:
        assert session_method_for(method) == expected


class TestLedgerPosts:
    async def test_cash_payment_bumps_cash_total_and_logs_entry(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        await ledger.add_cash_payment(db, session_id, 1200, payment_id="pay-1")
        s = await repo.get_by_id(db, session_id)
        assert s.total_cash_collected == 1200
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert [(e.kind, e.method, e.amount, e.payment_id) for e in entries.payments] == [
            ("CASH", "CASH", 1200, "pay-1")
        ]

    async def test_cash_payments_accumulate_in_call_order(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        await ledger.add_cash_payment(db, session_id, 100, payment_id="first")
        await ledger.add_cash_payment(db, session_id, 50, payment_id="second")
        s = await repo.get_by_id(db, session_id)
        assert s.total_cash_collected == 150
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert [e.payment_id for e in entries.payments] == ["first", "second"]

    async def test_credit_payment_defaults_to_transfer(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        await ledger.add_credit_payment(db, session_id, 800)
        s = await repo.get_by_id(db, session_id)
        assert s.total_credit_collected == 800
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert entries.payments[0].method == "TRANSFER"

    async def test_credit_payment_rejects_unknown_method(
        self, ledger: SessionLedger, db: FakeDb, session_id: str
    ) -> None:
        with pytest.raises(InvalidPaymentMethodError):
            await ledger.add_credit_payment(db, session_id, 100, method="wire")

    @pytest.mark.parametrize(
        ("type_", "column"),
        [("CASH", "total_cash_collected"), ("CREDIT", "total_credit_sales")],
    )
    async def test_delivery_post_routes_by_type(
        self,
        ledger: SessionLedger,
        repo: FakeSessionRepo,
        db: FakeDb,
        session_id: str,
        type_: str,
        column: str,
    ) -> None:
        await ledger.add_delivery(db, session_id, "dlv-1", 900, type_)
        s = await repo.get_by_id(db, session_id)
        assert getattr(s, column) == 900
        assert s.live_revenue() == 900

    async def test_delivery_post_rejects_unknown_type(
        self, ledger: SessionLedger, db: FakeDb, session_id: str
    ) -> None:
        with pytest.raises(InvalidDeliveryTypeError):
            await ledger.add_delivery(db, session_id, "dlv-1", 900, "BARTER")

    async def test_expense_label_is_trimmed_and_required(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        with pytest.raises(ExpenseLabelRequiredError):
            await ledger.add_expense(db, session_id, 100, "   ")
        await ledger.add_expense(db, session_id, 100, "  fuel ")
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert entries.expenses[0].label == "fuel"

    async def test_credit_sale_has_no_itemised_entry_known_gap(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        """Credit sales only move the total; the projection keeps creditSales empty."""
        await ledger.add_credit_sale(db, session_id, 400)
        s = await repo.get_by_id(db, session_id)
        assert s.total_credit_sales == 400
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert entries.deliveries == []
        assert entries.payments == []

    async def test_negative_amount_leaves_totals_untouched(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        with pytest.raises(InvalidAmountError):
            await ledger.add_cash_payment(db, session_id, -5)
        s = await repo.get_by_id(db, session_id)
        assert s.total_cash_collected == 0

    async def test_post_to_unknown_session_raises(
        self, ledger: SessionLedger, db: FakeDb
    ) -> None:
        with pytest.raises(SessionNotActiveError):
            await ledger.add_cash_payment(db, "missing", 100)

    async def test_post_to_ended_session_raises(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        await SessionService(repo=repo).end_session(db, AGENT)
        with pytest.raises(SessionNotActiveError):
            await ledger.add_expense(db, session_id, 10, "late")

    async def test_ledger_never_commits(
        self, ledger: SessionLedger, db: FakeDb, session_id: str
    ) -> None:
        commits = db.commits
        await ledger.add_cash_payment(db, session_id, 10)
        await ledger.add_delivery(db, session_id, "d", 10, "CASH")
        assert db.commits == commits


class TestRevenueInvariant:
    async def test_revenue_is_sum_of_income_totals(
        self, ledger: SessionLedger, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        await ledger.add_cash_payment(db, session_id, 100)
        await ledger.add_credit_payment(db, session_id, 200, method="CHEQUE")
        await ledger.add_delivery(db, session_id, "d1", 300, "CASH")
        await ledger.add_delivery(db, session_id, "d2", 400, "CREDIT")
        await ledger.add_credit_sale(db, session_id, 50)
        await ledger.add_expense(db, session_id, 999, "tolls")
        s = await repo.get_by_id(db, session_id)
        assert s.total_cash_collected == 400
        assert s.total_credit_collected == 200
        assert s.total_credit_sales == 450
        assert s.reported_revenue() == 1050


class TestSessionPoster:
    async def test_posts_cash_payment_and_commits(
        self, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        poster = SessionPoster(repo=repo)
        assert await poster.post_payment(db, AGENT, "pay-1", 500, "cash") is True
        assert db.committed_row("work_sessions", session_id).total_cash_collected == 500

    async def test_check_payment_goes_to_credit_as_cheque(
        self, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        poster = SessionPoster(repo=repo)
        await poster.post_payment(db, AGENT, "pay-2", 300, "check")
        entries = (await repo.entries_for(db, [session_id]))[session_id]
        assert (entries.payments[0].kind, entries.payments[0].method) == ("CREDIT", "CHEQUE")

    async def test_no_active_session_is_silent_noop(
        self, repo: FakeSessionRepo, db: FakeDb
    ) -> None:
        poster = SessionPoster(repo=repo)
        assert await poster.post_delivery(db, "nobody", "dlv-1", 100, "CREDIT") is False
        assert db.commits == 0
        assert db.rollbacks == 0

    async def test_missing_agent_is_noop(self, repo: FakeSessionRepo, db: FakeDb) -> None:
        poster = SessionPoster(repo=repo)
        assert await poster.post_payment(db, None, "pay-1", 100, "cash") is False

    async def test_failure_is_logged_and_rolled_back(
        self, db: FakeDb, caplog: pytest.LogCaptureFixture
    ) -> None:
        failing = FakeSessionRepo(fail_on_post=True)
        started = await SessionService(repo=failing).start_session(db, AGENT)
        poster = SessionPoster(repo=failing)

        with caplog.at_level(logging.ERROR):
            posted = await poster.post_delivery(db, AGENT, "dlv-1", 100, "CASH")

        assert posted is False
        assert db.rollbacks == 1
        assert db.committed_row("work_sessions", started["id"]).total_cash_collected == 0
        assert "Session post failed" in caplog.text

    async def test_invalid_delivery_type_is_swallowed(
        self, repo: FakeSessionRepo, db: FakeDb, session_id: str
    ) -> None:
        poster = SessionPoster(repo=repo)
        assert await poster.post_delivery(db, AGENT, "dlv-1", 100, "BARTER") is False
        assert db.rollbacks == 1
