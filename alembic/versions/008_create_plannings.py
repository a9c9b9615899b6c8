"""008: create plannings

Revision ID: 008
Revises: 007
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE plannings (
            id              VARCHAR(64)     PRIMARY KEY,
            circuit_id      VARCHAR(64)     REFERENCES circuits (id) ON DELETE SET NULL,
            title           VARCHAR(200),
            plan_date       DATE            NOT NULL,
            plan_time       VARCHAR(10),
            status          VARCHAR(20)     NOT NULL DEFAULT 'scheduled',
            stops           JSONB           NOT NULL DEFAULT '[]',
            commercial      VARCHAR(64),
            client_ids      JSONB           NOT NULL DEFAULT '[]',
            notes           TEXT,
            created_by      VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_plannings_status CHECK (status IN ('scheduled', 'completed'))
        );
    """)
    # One planning per commercial per day
    op.execute("""
        CREATE UNIQUE INDEX uq_plannings_commercial_day
            ON plannings (plan_date, commercial) WHERE commercial IS NOT NULL;
    """)
    op.execute("CREATE INDEX idx_plannings_date ON plannings (plan_date);")
    op.execute("CREATE INDEX idx_plannings_circuit ON plannings (circuit_id);")
    op.execute("""
        CREATE TRIGGER trg_plannings_updated_at
            BEFORE UPDATE ON plannings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS plannings CASCADE;")
