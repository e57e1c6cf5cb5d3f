"""create audit_logs table with partitioning

Revision ID: b5f0c3d92e17
Revises: 7a4e2f81c6d3
Create Date: 2026-10-19 10:31:52.504611
"""
from typing import Sequence, Union
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "b5f0c3d92e17"
down_revision: Union[str, Sequence[str], None] = "7a4e2f81c6d3"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONTHS = [("2026_10", "2026-10-01", "2026-11-01"),
          ("2026_11", "2026-11-01", "2026-12-01"),
          ("2026_12", "2026-12-01", "2027-01-01")]


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS audit")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS audit.audit_logs(
            id BIGINT GENERATED ALWAYS AS IDENTITY,
            ts_utc timestamptz NOT NULL DEFAULT now(),
            request_id text,
            scope text NOT NULL,
            action text NOT NULL,
            actor_user_id bigint,
            actor_role text,
            actor_ip inet,
            route text,
            object_type text,
            object_id bigint,
            event_id bigint,
            ticket_type_id bigint,
            ticket_id bigint,
            promo_code_id bigint,
            status text NOT NULL,
            reason text,
            meta jsonb NOT NULL DEFAULT '{}'::jsonb,
            CONSTRAINT chk_audit_status CHECK (status IN ('SUCCESS','FAIL')),
            PRIMARY KEY (ts_utc, id)
        ) PARTITION BY RANGE (ts_utc)
        """
    )

    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_ts ON audit.audit_logs (ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_actor_ts ON audit.audit_logs (actor_user_id, ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_action_ts ON audit.audit_logs (action, ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_obj ON audit.audit_logs (object_type, object_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_event ON audit.audit_logs (event_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_ticket_type ON audit.audit_logs (ticket_type_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_ticket ON audit.audit_logs (ticket_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_promo ON audit.audit_logs (promo_code_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_meta_gin ON audit.audit_logs USING gin (meta jsonb_path_ops)")

    for suffix, start, end in MONTHS:
        op.execute(
            f"""
            CREATE TABLE IF NOT EXISTS audit.audit_logs_{suffix}
              PARTITION OF audit.audit_logs
              FOR VALUES FROM (TIMESTAMPTZ '{start} 00:00:00+00') TO (TIMESTAMPTZ '{end} 00:00:00+00')
            """
        )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS audit.audit_logs_default
          PARTITION OF audit.audit_logs DEFAULT
        """
    )


def downgrade() -> None:
    op.execute("DROP SCHEMA IF EXISTS audit CASCADE")
