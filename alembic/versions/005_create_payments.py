"""005: create payments table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payments (
            id              VARCHAR(64)     PRIMARY KEY,
            client_id       VARCHAR(64)     NOT NULL REFERENCES clients (id) ON DELETE RESTRICT,
            delivery_id     VARCHAR(64)     REFERENCES deliveries (id) ON DELETE SET NULL,
            amount          BIGINT          NOT NULL,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'TND',
            method          VARCHAR(10)     NOT NULL DEFAULT 'cash',
            status          VARCHAR(10)     NOT NULL DEFAULT 'completed',
            paid_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            received_by     VARCHAR(64),
            notes           TEXT,
            created_by      VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payments_amount_gt_0  CHECK (amount > 0),
            CONSTRAINT ck_payments_method       CHECK (method IN ('cash', 'check', 'transfer', 'card', 'other')),
            CONSTRAINT ck_payments_status       CHECK (status IN ('pending', 'completed', 'cancelled'))
        );
    """)
    op.execute("CREATE INDEX idx_payments_client ON payments (client_id);")
    op.execute("CREATE INDEX idx_payments_paid_at ON payments (paid_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_payments_updated_at
            BEFORE UPDATE ON payments
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE payments IS 'Payments — amount in millimes, debits clients.total_debt';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payments CASCADE;")
