"""Notification schemas: ledger records, queue jobs and channel results."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    """Kinds of patient/doctor messages tracked by the dedup ledger."""

    REMINDER_72H = "reminder_72h"
    REMINDER_48H = "reminder_48h"
    CONFIRMATION = "confirmation"
    CANCELLATION = "cancellation"
    DOCTOR_ALERT = "doctor_alert"


class DispatchOutcome(str, Enum):
    """Result of processing a single notification job."""

    SENT = "sent"
    ALREADY_SENT = "already_sent"
    DROPPED = "dropped"


class NotificationRecord(BaseModel):
    """A message that was delivered for an appointment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    appointment_id: UUID
    kind: NotificationKind
    sent_at: datetime


class TemplateData(BaseModel):
    """Values rendered into message templates."""

    patient_name: str
    appointment_date: str
    clinic_name: str | None = None
    doctor_name: str | None = None
    reason: str | None = None
    escalation_reason: str | None = None


class NotificationJob(BaseModel):
    """Payload of a ``send_notification`` queue job."""

    kind: NotificationKind
    appointment_id: UUID
    patient_id: UUID
    phone: str
    metadata: dict[str, str] = Field(default_factory=dict)
    correlation_id: str


class DoctorAlertJob(BaseModel):
    """Payload of a ``send_doctor_alert`` queue job."""

    escalation_id: UUID
    correlation_id: str


class SendResult(BaseModel):
    """Outcome reported by a message channel."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    status_code: int | None = None
    # False when resending the same message cannot succeed
    retryable: bool = True


class EnqueuedReminder(BaseModel):
    """A reminder job handed to the queue by a sweep."""

    appointment_id: UUID
    kind: NotificationKind
