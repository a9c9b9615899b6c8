"""007: create circuits, link clients and deliveries to them

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE circuits (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(200)    NOT NULL,
            code                VARCHAR(64),
            zone                VARCHAR(100),
            region              VARCHAR(100),
            client_ids          JSONB           NOT NULL DEFAULT '[]',
            stops               JSONB           NOT NULL DEFAULT '[]',
            estimated_duration  INT             NOT NULL DEFAULT 0,
            assigned_to         VARCHAR(64),
            description         TEXT,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_by          VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_circuits_code             UNIQUE (code),
            CONSTRAINT ck_circuits_duration_gte_0   CHECK (estimated_duration >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_circuits_name ON circuits (name);")
    op.execute("CREATE INDEX idx_circuits_zone ON circuits (zone);")
    op.execute("CREATE INDEX idx_circuits_created_by ON circuits (created_by);")
    op.execute("""
        CREATE TRIGGER trg_circuits_updated_at
            BEFORE UPDATE ON circuits
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        ALTER TABLE clients
            ADD COLUMN circuit_id VARCHAR(64)
                REFERENCES circuits (id) ON DELETE SET NULL;
    """)
    op.execute("CREATE INDEX idx_clients_circuit ON clients (circuit_id);")

    # Rows written before this revision may hold ids with no circuit behind them
    op.execute("""
        UPDATE deliveries SET circuit_id = NULL
        WHERE circuit_id IS NOT NULL
          AND circuit_id NOT IN (SELECT id FROM circuits);
    """)
    op.execute("""
        ALTER TABLE deliveries
            ADD CONSTRAINT fk_deliveries_circuit
                FOREIGN KEY (circuit_id) REFERENCES circuits (id) ON DELETE SET NULL;
    """)
    op.execute("CREATE INDEX idx_deliveries_circuit ON deliveries (circuit_id);")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_deliveries_circuit;")
    op.execute("ALTER TABLE deliveries DROP CONSTRAINT IF EXISTS fk_deliveries_circuit;")
    op.execute("DROP INDEX IF EXISTS idx_clients_circuit;")
    op.execute("ALTER TABLE clients DROP COLUMN IF EXISTS circuit_id;")
    op.execute("DROP TABLE IF EXISTS circuits CASCADE;")
