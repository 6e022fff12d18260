"""Service records table using SQLAlchemy Core."""

from sqlalchemy import Column, ForeignKey, String, Table, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from carebook.models.base import metadata

service_records = Table(
    "service_records",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "appointment_id",
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("patient_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("professional_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("kind", String(20), nullable=False, server_default="consultation"),
    Column("content", Text, nullable=False),
    Column("conclusions", Text, nullable=True),
    Column("recommendations", Text, nullable=True),
    Column("created_by", UUID(as_uuid=True), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
)
