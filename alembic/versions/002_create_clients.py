"""002: create clients table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE clients (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(200)    NOT NULL,
            shop_name       VARCHAR(200),
            code            VARCHAR(64),
            email           VARCHAR(255),
            phone           VARCHAR(32),
            street          VARCHAR(255),
            city            VARCHAR(100),
            governorate     VARCHAR(100),
            postal_code     VARCHAR(16),
            type            VARCHAR(20)     NOT NULL DEFAULT 'mechanic',
            segment         VARCHAR(20)     NOT NULL DEFAULT 'STANDARD',
            total_debt      BIGINT          NOT NULL DEFAULT 0,
            total_orders    INT             NOT NULL DEFAULT 0,
            last_visit      TIMESTAMPTZ,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            archived        BOOLEAN         NOT NULL DEFAULT FALSE,
            notes           TEXT,
            created_by      VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_clients_code      UNIQUE (code),
            CONSTRAINT ck_clients_type      CHECK (type IN ('mechanic', 'car_wash', 'hardware')),
            CONSTRAINT ck_clients_segment   CHECK (segment IN ('PREMIUM', 'STANDARD', 'WHOLESALE', 'RETAIL'))
        );
    """)
    op.execute("CREATE INDEX idx_clients_created_by ON clients (created_by);")
    op.execute("CREATE INDEX idx_clients_name ON clients (name);")
    op.execute("""
        CREATE TRIGGER trg_clients_updated_at
            BEFORE UPDATE ON clients
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE clients IS 'Clients — total_debt in millimes, signed running balance';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS clients CASCADE;")
