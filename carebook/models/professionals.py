"""Professionals table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from carebook.models.base import metadata

professionals = Table(
    "professionals",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("name", Text, nullable=False),
    Column("category", String(30), nullable=False, index=True),
    # Credentials (unique across every stored professional)
    Column("registration_number", String(100), nullable=False, unique=True),
    Column("national_id", String(50), nullable=True, unique=True),
    Column("email", String(320), nullable=False),
    Column("phone", String(20), nullable=True),
    # Practice
    Column("consultation_minutes", Integer, nullable=False, server_default=text("60")),
    Column("consultation_fee", Numeric(10, 2), nullable=True),
    Column("modalities", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("working_hours", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    # Status management
    Column("status", String(20), nullable=False, server_default="active", index=True),
    Column("status_reason", Text, nullable=True),
    Column("status_changed_at", TIMESTAMP(timezone=True), nullable=True),
    # Audit fields
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "status IN ('active', 'inactive', 'suspended')",
        name="professionals_status_check",
    ),
    CheckConstraint(
        "category IN ('psychological', 'social', 'legal', 'medical', 'physiotherapy', "
        "'nutrition')",
        name="professionals_category_check",
    ),
)

# Emails are unique regardless of case
Index("uq_professionals_email_lower", func.lower(professionals.c.email), unique=True)
