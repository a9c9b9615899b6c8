"""Pydantic schemas for the work-session API and the session projection."""

from datetime import datetime
from typing import Any

from pydantic import Field

from src.rb_common.datetime_utils import ensure_utc, utc_now
from src.rb_common.schemas import CamelModel
from src.rb_session.domain.models import SessionEntries, WorkSession


class StartSessionRequest(CamelModel):
    start_time: datetime | None = None


class EndSessionRequest(CamelModel):
    session_id: str | None = None
    end_time: datetime | None = None


class AddExpenseRequest(CamelModel):
    # Shape only; sign and label checks live in the ledger
    amount: int
    label: str = Field("", max_length=200)


class PaymentEntryOut(CamelModel):
    id: str
    client_id: str
    client_name: str
    amount: int
    method: str
    time: datetime | None


class DeliveryEntryOut(CamelModel):
    id: str
    delivery_id: str
    client_id: str
    client_name: str
    type: str
    total: int
    time: datetime | None


class ExpenseEntryOut(CamelModel):
    id: str
    label: str
    amount: int
    time: datetime | None


class SessionProjection(CamelModel):
    id: str
    start_time: datetime
    end_time: datetime | None
    status: str
    total_cash: int
    total_credit_collected: int
    total_credit_sales: int
    total_expenses: int
    total_revenue: int
    cash_payments: list[PaymentEntryOut]
    credit_payments: list[PaymentEntryOut]
    credit_sales: list[Any] = Field(default_factory=list)
    expenses: list[ExpenseEntryOut]
    deliveries_completed: list[DeliveryEntryOut]
    duration_seconds: int

    @classmethod
    def build(cls, s: WorkSession, entries: SessionEntries) -> "SessionProjection":
        cash: list[PaymentEntryOut] = []
        credit: list[PaymentEntryOut] = []
        for p in entries.payments:
            out = PaymentEntryOut(
                id=p.payment_id or str(p.entry_id),
                client_id=p.client_id or "",
                client_name=p.client_name or "",
                amount=p.amount,
                method=p.method,
                time=p.created_at,
            )
            (cash if p.kind == "CASH" else credit).append(out)
        end = ensure_utc(s.end_time) if s.end_time else utc_now()
        return cls(
            id=s.id,
            start_time=s.start_time,
            end_time=s.end_time,
            status=s.status,
            total_cash=s.total_cash_collected,
            total_credit_collected=s.total_credit_collected,
            total_credit_sales=s.total_credit_sales,
            total_expenses=s.total_expenses,
            total_revenue=s.reported_revenue(),
            cash_payments=cash,
            credit_payments=credit,
            expenses=[
                ExpenseEntryOut(
                    id=str(e.entry_id), label=e.label, amount=e.amount, time=e.created_at
                )
                for e in entries.expenses
            ],
            deliveries_completed=[
                DeliveryEntryOut(
                    id=d.delivery_id,
                    delivery_id=d.delivery_id,
                    client_id=d.client_id or "",
                    client_name=d.client_name or "",
                    type=d.type,
                    total=d.delivery_total if d.delivery_total is not None else d.amount,
                    time=d.created_at,
                )
                for d in entries.deliveries
            ],
            duration_seconds=max(0, int((end - ensure_utc(s.start_time)).total_seconds())),
        )
