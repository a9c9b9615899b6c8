"""Session ledger posts and the best-effort poster used after primary commits.

SessionLedger validates and issues one conditional post; it never commits,
the caller owns the transaction. SessionPoster wraps a post in its own commit
scope so a failing post can never undo, or surface through, the delivery or
payment transaction that triggered it.
"""

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.enums import PaymentMethod, SessionDeliveryType, SessionPaymentMethod
from src.rb_common.errors import (
    ExpenseLabelRequiredError,
    InvalidAmountError,
    InvalidDeliveryTypeError,
    InvalidPaymentMethodError,
    SessionNotActiveError,
)
from src.rb_session.domain.repository import SessionRepositoryProtocol
from src.rb_session.infrastructure.persistence import SessionRepository

logger = logging.getLogger(__name__)


def validate_amount(amount: object) -> int:
    """Amounts are non-negative int millimes. bool is rejected even though it is an int."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmountError()
    return amount


def _delivery_type(value: object) -> str:
    try:
        return SessionDeliveryType(value).value
    except ValueError:
        raise InvalidDeliveryTypeError(value) from None


def _credit_method(value: object) -> str:
    try:
        return SessionPaymentMethod(value).value
    except ValueError:
        raise InvalidPaymentMethodError(value) from None


def session_method_for(method: str) -> tuple[str, str]:
    """Map a payment method onto (entry kind, session method).

    cash -> cash collected; check -> credit collected as CHEQUE; transfer,
    card and other -> credit collected as TRANSFER.
    """
    m = PaymentMethod(method)
    if m is PaymentMethod.CASH:
        return "CASH", SessionPaymentMethod.CASH.value
    if m is PaymentMethod.CHECK:
        return "CREDIT", SessionPaymentMethod.CHEQUE.value
    return "CREDIT", SessionPaymentMethod.TRANSFER.value


class SessionLedger:
    def __init__(self, repo: SessionRepositoryProtocol | None = None) -> None:
        self._repo: SessionRepositoryProtocol = repo or SessionRepository()

    async def add_cash_payment(
        self,
        db: AsyncSession,
        session_id: str,
        amount: int,
        payment_id: str | None = None,
    ) -> None:
        amt = validate_amount(amount)
        ok = await self._repo.add_payment_entry(
            db, session_id, "CASH", SessionPaymentMethod.CASH.value, amt, payment_id
        )
        if not ok:
            raise SessionNotActiveError(session_id)

    async def add_credit_payment(
        self,
        db: AsyncSession,
        session_id: str,
        amount: int,
        payment_id: str | None = None,
        method: str = SessionPaymentMethod.TRANSFER.value,
    ) -> None:
        amt = validate_amount(amount)
        ok = await self._repo.add_payment_entry(
            db, session_id, "CREDIT", _credit_method(method), amt, payment_id
        )
        if not ok:
            raise SessionNotActiveError(session_id)

    async def add_expense(
        self, db: AsyncSession, session_id: str, amount: int, label: str | None
    ) -> None:
        amt = validate_amount(amount)
        trimmed = (label or "").strip()
        if not trimmed:
            raise ExpenseLabelRequiredError()
        if not await self._repo.add_expense_entry(db, session_id, trimmed, amt):
            raise SessionNotActiveError(session_id)

    async def add_delivery(
        self,
        db: AsyncSession,
        session_id: str,
        delivery_id: str,
        amount: int,
        type_: str,
    ) -> None:
        kind = _delivery_type(type_)
        amt = validate_amount(amount)
        if not await self._repo.add_delivery_entry(db, session_id, delivery_id, kind, amt):
            raise SessionNotActiveError(session_id)

    async def add_credit_sale(self, db: AsyncSession, session_id: str, amount: int) -> None:
        """Bumps total_credit_sales only. Credit sales have no entry log."""
        amt = validate_amount(amount)
        if not await self._repo.add_credit_sale(db, session_id, amt):
            raise SessionNotActiveError(session_id)


class SessionPoster:
    """Posts to an agent's ACTIVE session after the primary transaction committed.

    No active session is a silent no-op. Any failure is logged and rolled
    back; nothing is raised to the caller.
    """

    def __init__(
        self,
        ledger: SessionLedger | None = None,
        repo: SessionRepositoryProtocol | None = None,
    ) -> None:
        self._repo: SessionRepositoryProtocol = repo or SessionRepository()
        self._ledger = ledger or SessionLedger(self._repo)

    async def post_delivery(
        self,
        db: AsyncSession,
        agent_id: str | None,
        delivery_id: str,
        amount: int,
        type_: str,
    ) -> bool:
        return await self._post(
            db,
            agent_id,
            f"delivery {delivery_id}",
            lambda sid: self._ledger.add_delivery(db, sid, delivery_id, amount, type_),
        )

    async def post_payment(
        self,
        db: AsyncSession,
        agent_id: str | None,
        payment_id: str,
        amount: int,
        method: str,
    ) -> bool:
        kind, session_method = session_method_for(method)

        async def _do(sid: str) -> None:
            if kind == "CASH":
                await self._ledger.add_cash_payment(db, sid, amount, payment_id)
            else:
                await self._ledger.add_credit_payment(db, sid, amount, payment_id, session_method)

        return await self._post(db, agent_id, f"payment {payment_id}", _do)

    async def _post(
        self,
        db: AsyncSession,
        agent_id: str | None,
        what: str,
        action: Callable[[str], Awaitable[None]],
    ) -> bool:
        """Returns True only when the entry was committed to a session."""
        if not agent_id:
            return False
        try:
            session = await self._repo.get_active(db, agent_id)
            if session is None:
                return False
            await action(session.id)
            await db.commit()
            return True
        except SessionNotActiveError:
            # Session ended between the primary commit and this post.
            logger.warning(
                "Session post dropped for %s: agent %s has no active session", what, agent_id
            )
            await db.rollback()
        except Exception:
            logger.exception("Session post failed for %s (agent %s)", what, agent_id)
            await db.rollback()
        return False
