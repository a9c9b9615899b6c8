"""006: create work_sessions and entry logs

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE work_sessions (
            id                      VARCHAR(64)     PRIMARY KEY,
            agent_id                VARCHAR(64)     NOT NULL,
            start_time              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            end_time                TIMESTAMPTZ,
            status                  VARCHAR(10)     NOT NULL DEFAULT 'ACTIVE',
            total_cash_collected    BIGINT          NOT NULL DEFAULT 0,
            total_credit_collected  BIGINT          NOT NULL DEFAULT 0,
            total_credit_sales      BIGINT          NOT NULL DEFAULT 0,
            total_expenses          BIGINT          NOT NULL DEFAULT 0,
            total_revenue           BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_work_sessions_status CHECK (status IN ('ACTIVE', 'ENDED')),
            CONSTRAINT ck_work_sessions_end_time
                CHECK ((status = 'ACTIVE' AND end_time IS NULL) OR (status = 'ENDED' AND end_time IS NOT NULL)),
            CONSTRAINT ck_work_sessions_totals_gte_0 CHECK (
                total_cash_collected >= 0 AND total_credit_collected >= 0
                AND total_credit_sales >= 0 AND total_expenses >= 0 AND total_revenue >= 0
            )
        );
    """)
    # At most one ACTIVE session per agent
    op.execute("""
        CREATE UNIQUE INDEX uq_work_sessions_one_active
            ON work_sessions (agent_id) WHERE status = 'ACTIVE';
    """)
    op.execute("CREATE INDEX idx_work_sessions_agent_start ON work_sessions (agent_id, start_time DESC);")
    op.execute("""
        CREATE TRIGGER trg_work_sessions_updated_at
            BEFORE UPDATE ON work_sessions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    # Entry logs are append-only; BIGSERIAL ids preserve commit order.
    op.execute("""
        CREATE TABLE work_session_payments (
            id              BIGSERIAL       PRIMARY KEY,
            session_id      VARCHAR(64)     NOT NULL REFERENCES work_sessions (id) ON DELETE CASCADE,
            kind            VARCHAR(10)     NOT NULL,
            method          VARCHAR(10)     NOT NULL,
            amount          BIGINT          NOT NULL,
            payment_id      VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ws_payments_kind      CHECK (kind IN ('CASH', 'CREDIT')),
            CONSTRAINT ck_ws_payments_method    CHECK (method IN ('CASH', 'TRANSFER', 'CHEQUE')),
            CONSTRAINT ck_ws_payments_amount    CHECK (amount >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE work_session_deliveries (
            id              BIGSERIAL       PRIMARY KEY,
            session_id      VARCHAR(64)     NOT NULL REFERENCES work_sessions (id) ON DELETE CASCADE,
            delivery_id     VARCHAR(64)     NOT NULL,
            type            VARCHAR(10)     NOT NULL,
            amount          BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ws_deliveries_type    CHECK (type IN ('CASH', 'CREDIT')),
            CONSTRAINT ck_ws_deliveries_amount  CHECK (amount >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE work_session_expenses (
            id              BIGSERIAL       PRIMARY KEY,
            session_id      VARCHAR(64)     NOT NULL REFERENCES work_sessions (id) ON DELETE CASCADE,
            label           VARCHAR(200)    NOT NULL,
            amount          BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ws_expenses_label     CHECK (LENGTH(TRIM(label)) > 0),
            CONSTRAINT ck_ws_expenses_amount    CHECK (amount >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ws_payments_session ON work_session_payments (session_id, id);")
    op.execute("CREATE INDEX idx_ws_deliveries_session ON work_session_deliveries (session_id, id);")
    op.execute("CREATE INDEX idx_ws_expenses_session ON work_session_expenses (session_id, id);")
    op.execute("COMMENT ON TABLE work_sessions IS 'Agent workday ledger — totals in millimes, ENDED rows are immutable';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS work_session_expenses CASCADE;")
    op.execute("DROP TABLE IF EXISTS work_session_deliveries CASCADE;")
    op.execute("DROP TABLE IF EXISTS work_session_payments CASCADE;")
    op.execute("DROP TABLE IF EXISTS work_sessions CASCADE;")
