"""Escalation schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Escalation(BaseModel):
    """A patient interaction flagged for human review."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    message: str
    reason: str
    created_at: datetime
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution_notes: str | None = None

    @model_validator(mode="after")
    def check_resolution_pair(self) -> "Escalation":
        """Resolution timestamp and resolver are set together."""
        if (self.resolved_at is None) != (self.resolved_by is None):
            raise ValueError("resolved_at and resolved_by must be both set or both unset")
        return self

    @property
    def is_resolved(self) -> bool:
        """Whether an operator already handled this escalation."""
        return self.resolved_at is not None


class EscalationWithPatient(Escalation):
    """Escalation with minimal patient display context."""

    patient_name: str
    patient_phone: str


class EscalationFilters(BaseModel):
    """Schema for escalation filtering and pagination."""

    resolved: bool | None = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class EscalationListResponse(BaseModel):
    """Paginated escalation list."""

    total: int
    limit: int
    offset: int
    items: list[EscalationWithPatient]


class EscalationResolve(BaseModel):
    """Schema for resolving an escalation."""

    notes: str = Field(default="", max_length=2000)
