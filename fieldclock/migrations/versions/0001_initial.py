"""Initial clock event schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

clock_event_type = postgresql.ENUM(
    "IN",
    "OUT",
    name="clock_event_type",
    create_type=False,
)
clock_event_shift_label = postgresql.ENUM(
    "MORNING",
    "AFTERNOON",
    "NIGHT",
    name="clock_event_shift_label",
    create_type=False,
)
audit_actor_type = postgresql.ENUM(
    "OPERATOR",
    "ADMIN",
    name="audit_actor_type",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    clock_event_type.create(bind, checkfirst=True)
    clock_event_shift_label.create(bind, checkfirst=True)
    audit_actor_type.create(bind, checkfirst=True)

    op.create_table(
        "clock_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("worker_id", sa.String(length=255), nullable=False),
        sa.Column("site", sa.String(length=32), nullable=False),
        sa.Column("type", clock_event_type, nullable=False),
        sa.Column("ts_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("distance_m", sa.Float(), nullable=True),
        sa.Column("inside_geofence", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("day_key", sa.String(length=10), nullable=False),
        sa.Column("justification", sa.String(length=1000), nullable=True),
        sa.Column("shift_label", clock_event_shift_label, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint(
            "worker_id",
            "site",
            "type",
            "day_key",
            name="uq_clock_events_worker_site_type_day",
        ),
    )
    op.create_index("ix_clock_events_worker_id", "clock_events", ["worker_id"], unique=False)
    op.create_index("ix_clock_events_site", "clock_events", ["site"], unique=False)
    op.create_index("ix_clock_events_ts_utc", "clock_events", ["ts_utc"], unique=False)

    op.create_table(
        "absences",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("worker_id", sa.String(length=255), nullable=False),
        sa.Column("site", sa.String(length=32), nullable=False),
        sa.Column("absence_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("reason", sa.String(length=1000), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_absences_worker_id", "absences", ["worker_id"], unique=False)
    op.create_index("ix_absences_absence_date", "absences", ["absence_date"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "ts_utc",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("actor_type", audit_actor_type, nullable=False),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=255), nullable=True),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("ip", sa.String(length=128), nullable=True),
        sa.Column("user_agent", sa.String(length=1024), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_index("ix_audit_logs_ts_utc", "audit_logs", ["ts_utc"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_ts_utc", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_absences_absence_date", table_name="absences")
    op.drop_index("ix_absences_worker_id", table_name="absences")
    op.drop_table("absences")
    op.drop_index("ix_clock_events_ts_utc", table_name="clock_events")
    op.drop_index("ix_clock_events_site", table_name="clock_events")
    op.drop_index("ix_clock_events_worker_id", table_name="clock_events")
    op.drop_table("clock_events")

    bind = op.get_bind()
    audit_actor_type.drop(bind, checkfirst=True)
    clock_event_shift_label.drop(bind, checkfirst=True)
    clock_event_type.drop(bind, checkfirst=True)
