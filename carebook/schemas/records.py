"""Service record schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class RecordKind(str, Enum):
    """What kind of write-up a record is."""

    CONSULTATION = "consultation"
    SESSION = "session"
    GUIDANCE = "guidance"
    REFERRAL = "referral"


class ServiceRecordCreate(BaseModel):
    """Notes written by a professional about an appointment."""

    appointment_id: UUID
    kind: RecordKind = RecordKind.CONSULTATION
    content: str = Field(..., min_length=1, max_length=20000)
    conclusions: str | None = Field(None, max_length=4000)
    recommendations: str | None = Field(None, max_length=4000)


class ServiceRecord(ServiceRecordCreate):
    """Stored service record; patient and professional are copied from the appointment."""

    id: UUID
    patient_id: UUID
    professional_id: UUID
    created_by: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
