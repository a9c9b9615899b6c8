"""Domain models for rb_session — pure dataclasses, no SQLAlchemy dependency.

All totals are int millimes. Entries are append-only; entry_id is a
monotonically increasing sequence value, so ordering by it reproduces the
order in which the posts committed.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.rb_common.enums import SessionStatus


@dataclass
class WorkSession:
    id: str
    agent_id: str
    start_time: datetime
    end_time: datetime | None = None
    status: str = SessionStatus.ACTIVE.value
    total_cash_collected: int = 0
    total_credit_collected: int = 0
    total_credit_sales: int = 0
    total_expenses: int = 0
    total_revenue: int = 0      # frozen at end; 0 while ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE.value

    def live_revenue(self) -> int:
        return self.total_cash_collected + self.total_credit_collected + self.total_credit_sales

    def reported_revenue(self) -> int:
        """Live sum while ACTIVE, the stored frozen value once ENDED."""
        return self.live_revenue() if self.is_active else self.total_revenue


@dataclass
class PaymentEntry:
    entry_id: int
    session_id: str
    kind: str                   # CASH | CREDIT, picks the total it was added to
    method: str                 # CASH | TRANSFER | CHEQUE
    amount: int
    payment_id: str | None = None
    client_id: str | None = None
    client_name: str | None = None
    created_at: datetime | None = None


@dataclass
class DeliveryEntry:
    entry_id: int
    session_id: str
    delivery_id: str
    type: str                   # CASH | CREDIT
    amount: int
    delivery_total: int | None = None
    client_id: str | None = None
    client_name: str | None = None
    created_at: datetime | None = None


@dataclass
class ExpenseEntry:
    entry_id: int
    session_id: str
    label: str
    amount: int
    created_at: datetime | None = None


@dataclass
class SessionEntries:
    payments: list[PaymentEntry] = field(default_factory=list)
    deliveries: list[DeliveryEntry] = field(default_factory=list)
    expenses: list[ExpenseEntry] = field(default_factory=list)
