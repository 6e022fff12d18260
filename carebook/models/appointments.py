"""Appointments and reviews tables using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from carebook.models.base import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    # Ownership / references (no FK to professionals: hard deletes bypass referential checks)
    Column("patient_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("professional_id", UUID(as_uuid=True), nullable=False),
    Column("category", String(30), nullable=False),
    # Slot; ends_at is denormalised for range queries
    Column("scheduled_at", TIMESTAMP(timezone=True), nullable=False),
    Column("ends_at", TIMESTAMP(timezone=True), nullable=False),
    Column("duration_minutes", Integer, nullable=False),
    Column("modality", String(20), nullable=False),
    Column("priority", String(20), nullable=False, server_default="normal"),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("reason", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("professional_notes", Text, nullable=True),
    Column("cancellation_reason", Text, nullable=True),
    Column("value", Numeric(10, 2), nullable=True),
    Column("history", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    # Audit fields
    Column("created_by", UUID(as_uuid=True), nullable=True),
    Column("status_changed_by", UUID(as_uuid=True), nullable=True),
    Column("status_changed_at", TIMESTAMP(timezone=True), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    # Soft delete (audit retention)
    Column("deleted_at", TIMESTAMP(timezone=True), nullable=True),
    Index("ix_appointments_professional_slot", "professional_id", "scheduled_at", "ends_at"),
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', 'cancelled', "
        "'no_show', 'rescheduled')",
        name="appointments_status_check",
    ),
    CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
)

reviews = Table(
    "reviews",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "appointment_id",
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("professional_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("reviewer_id", UUID(as_uuid=True), nullable=True),
    Column("score", Integer, nullable=False),
    Column("comment", Text, nullable=True),
    Column("would_recommend", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint("score BETWEEN 1 AND 5", name="reviews_score_check"),
)
