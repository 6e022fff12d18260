"""Events and attendance confirmations tables using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from carebook.models.base import metadata

events = Table(
    "events",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("starts_at", TIMESTAMP(timezone=True), nullable=False),
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("requires_confirmation", Boolean, nullable=False, server_default=text("true")),
    Column("max_participants", Integer, nullable=True),
    Column("responsible_id", UUID(as_uuid=True), nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
        name="events_status_check",
    ),
)

event_confirmations = Table(
    "event_confirmations",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "event_id",
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_id", UUID(as_uuid=True), nullable=False),
    Column("status", String(20), nullable=False),
    Column("notes", Text, nullable=True),
    Column("responded_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    UniqueConstraint("event_id", "user_id", name="uq_event_confirmations_event_user"),
    CheckConstraint(
        "status IN ('confirmed', 'declined', 'pending')",
        name="event_confirmations_status_check",
    ),
)
