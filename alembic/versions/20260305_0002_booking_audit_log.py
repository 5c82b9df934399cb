"""booking audit log

Revision ID: 20260305_0002
Revises: 20260301_0001
Create Date: 2026-03-05
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20260305_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())
    if "booking_audit_logs" in tables:
        return

    op.create_table(
        "booking_audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_booking_audit_logs_id", "booking_audit_logs", ["id"])
    op.create_index("ix_booking_audit_logs_booking_id", "booking_audit_logs", ["booking_id"])
    op.create_index("ix_booking_audit_logs_action", "booking_audit_logs", ["action"])
    op.create_index("ix_booking_audit_logs_actor_id", "booking_audit_logs", ["actor_id"])
    op.create_index("ix_booking_audit_logs_created_at", "booking_audit_logs", ["created_at"])
    op.create_index(
        "ix_booking_audit_logs_booking_created",
        "booking_audit_logs",
        ["booking_id", "created_at"],
    )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())
    if "booking_audit_logs" not in tables:
        return
    op.drop_table("booking_audit_logs")
