"""004: create deliveries and delivery_lines

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE deliveries (
            id              VARCHAR(64)     PRIMARY KEY,
            client_id       VARCHAR(64)     NOT NULL REFERENCES clients (id) ON DELETE RESTRICT,
            circuit_id      VARCHAR(64),
            total_amount    BIGINT          NOT NULL DEFAULT 0,
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            assigned_to     VARCHAR(64),
            planned_date    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            delivery_date   TIMESTAMPTZ,
            completed_at    TIMESTAMPTZ,
            proof_photo     VARCHAR(500),
            notes           TEXT,
            created_by      VARCHAR(64),
            payment_type    VARCHAR(10)     NOT NULL DEFAULT 'CASH',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_deliveries_total_gte_0    CHECK (total_amount >= 0),
            CONSTRAINT ck_deliveries_status         CHECK (status IN ('pending', 'in_progress', 'delivered', 'cancelled')),
            CONSTRAINT ck_deliveries_payment_type   CHECK (payment_type IN ('CASH', 'CREDIT'))
        );
    """)
    op.execute("""
        CREATE TABLE delivery_lines (
            delivery_id     VARCHAR(64)     NOT NULL REFERENCES deliveries (id) ON DELETE CASCADE,
            position        INT             NOT NULL,
            product_id      VARCHAR(64)     NOT NULL REFERENCES products (id) ON DELETE RESTRICT,
            quantity        INT             NOT NULL,
            unit_price      BIGINT          NOT NULL,
            PRIMARY KEY (delivery_id, position),
            CONSTRAINT ck_delivery_lines_qty_gt_0       CHECK (quantity > 0),
            CONSTRAINT ck_delivery_lines_price_gte_0    CHECK (unit_price >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_deliveries_client ON deliveries (client_id);")
    op.execute("CREATE INDEX idx_deliveries_planned_status ON deliveries (planned_date, status);")
    op.execute("CREATE INDEX idx_deliveries_assigned_to ON deliveries (assigned_to);")
    op.execute("""
        CREATE TRIGGER trg_deliveries_updated_at
            BEFORE UPDATE ON deliveries
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE deliveries IS 'Deliveries — total_amount frozen at creation, millimes';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS delivery_lines CASCADE;")
    op.execute("DROP TABLE IF EXISTS deliveries CASCADE;")
