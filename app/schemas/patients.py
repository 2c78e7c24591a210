"""Patient schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Patient(BaseModel):
    """Patient as read by the scheduling core."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    phone: str
    name: str
    cpf: str | None = None
    consent_given_at: datetime | None = None
    created_at: datetime

    @property
    def has_consent(self) -> bool:
        """Whether the patient agreed to data processing and messaging."""
        return self.consent_given_at is not None
