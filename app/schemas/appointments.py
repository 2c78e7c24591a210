"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class TimeSlot(BaseModel):
    """A 2-hour Saturday block. Computed on demand, never persisted."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime


def _require_timezone(v: datetime) -> datetime:
    if v.tzinfo is None or v.utcoffset() is None:
        raise ValueError("Datetime must include a timezone offset")
    return v


class Appointment(BaseModel):
    """Appointment entity as returned by the store and the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    scheduled_at: datetime
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: UUID
    scheduled_at: datetime

    @field_validator("scheduled_at")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Reject naive datetimes; slot boundaries are clinic-local."""
        return _require_timezone(v)


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to another slot."""

    scheduled_at: datetime

    @field_validator("scheduled_at")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Reject naive datetimes; slot boundaries are clinic-local."""
        return _require_timezone(v)


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""

    reason: str = Field(..., min_length=1, max_length=500)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    reason: str | None = Field(default=None, max_length=500)


class AppointmentListResponse(BaseModel):
    """Schema for a patient's appointment list."""

    total: int
    items: list[Appointment]


class AvailabilityResponse(BaseModel):
    """Free slots for a calendar day."""

    date: date
    slots: list[TimeSlot]
