"""Create service records, events, confirmations and notifications tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("NOW()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "service_records",
        _id(),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("professional_id", postgresql.UUID(), nullable=False),
        sa.Column("kind", sa.String(length=20), server_default="consultation", nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("conclusions", sa.Text(), nullable=True),
        sa.Column("recommendations", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_service_records_appointment_id", "service_records", ["appointment_id"])
    op.create_index("ix_service_records_patient_id", "service_records", ["patient_id"])
    op.create_index(
        "ix_service_records_professional_id", "service_records", ["professional_id"]
    )

    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("starts_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="scheduled", nullable=False),
        sa.Column(
            "requires_confirmation", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("responsible_id", postgresql.UUID(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
            name="events_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "event_confirmations",
        _id(),
        sa.Column("event_id", postgresql.UUID(), nullable=False),
        sa.Column("user_id", postgresql.UUID(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("responded_at"),
        sa.CheckConstraint(
            "status IN ('confirmed', 'declined', 'pending')",
            name="event_confirmations_status_check",
        ),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_confirmations_event_user"),
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("recipient_id", postgresql.UUID(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("priority", sa.String(length=20), server_default="normal", nullable=False),
        sa.Column("action_url", sa.Text(), nullable=True),
        sa.Column("read_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "category IN ('appointment_created', 'appointment_status', 'event_declined', 'other')",
            name="notifications_category_check",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'normal', 'high', 'urgent')",
            name="notifications_priority_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_notifications_recipient_created", "notifications", ["recipient_id", "created_at"]
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_notifications_recipient_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("event_confirmations")
    op.drop_table("events")
    op.drop_index("ix_service_records_professional_id", table_name="service_records")
    op.drop_index("ix_service_records_patient_id", table_name="service_records")
    op.drop_index("ix_service_records_appointment_id", table_name="service_records")
    op.drop_table("service_records")
