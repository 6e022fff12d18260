"""Notification inbox table using SQLAlchemy Core."""

from sqlalchemy import CheckConstraint, Column, Index, String, Table, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from carebook.models.base import metadata

notifications = Table(
    "notifications",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("recipient_id", UUID(as_uuid=True), nullable=False),
    Column("title", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("category", String(50), nullable=False),
    Column("priority", String(20), nullable=False, server_default="normal"),
    Column("action_url", Text, nullable=True),
    Column("read_at", TIMESTAMP(timezone=True), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "category IN ('appointment_created', 'appointment_status', 'event_declined', 'other')",
        name="notifications_category_check",
    ),
    CheckConstraint(
        "priority IN ('low', 'normal', 'high', 'urgent')",
        name="notifications_priority_check",
    ),
    Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
)
