"""Store contracts the services depend on.

Production wiring passes the SQLAlchemy stores from this package; tests may
pass anything that satisfies these protocols.
"""

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from app.schemas.appointments import Appointment, TimeSlot
from app.schemas.escalations import Escalation, EscalationFilters, EscalationWithPatient
from app.schemas.notifications import NotificationKind, NotificationRecord
from app.schemas.patients import Patient


class AppointmentStore(Protocol):
    async def create(self, patient_id: UUID, scheduled_at: datetime) -> Appointment: ...

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None: ...

    async def find_by_patient_id(self, patient_id: UUID) -> list[Appointment]: ...

    async def find_by_slot(
        self, slot: TimeSlot, exclude_id: UUID | None = None
    ) -> Appointment | None: ...

    async def find_by_date_range(
        self, start: datetime, end: datetime, exclude_cancelled: bool = False
    ) -> list[Appointment]: ...

    async def update(self, appointment_id: UUID, **values: Any) -> Appointment: ...


class PatientStore(Protocol):
    async def find_by_id(self, patient_id: UUID) -> Patient | None: ...


class NotificationLedger(Protocol):
    async def create(self, appointment_id: UUID, kind: NotificationKind) -> NotificationRecord: ...

    async def find_by_appointment_and_kind(
        self, appointment_id: UUID, kind: NotificationKind
    ) -> NotificationRecord | None: ...

    async def find_by_appointment_id(self, appointment_id: UUID) -> list[NotificationRecord]: ...


class EscalationStore(Protocol):
    async def create(self, patient_id: UUID, message: str, reason: str) -> Escalation: ...

    async def find_by_id(self, escalation_id: UUID) -> Escalation | None: ...

    async def list(self, filters: EscalationFilters) -> list[EscalationWithPatient]: ...

    async def count(self, filters: EscalationFilters) -> int: ...

    async def resolve(
        self, escalation_id: UUID, resolved_by: str, notes: str | None = None
    ) -> Escalation | None: ...


class AuditLogStore(Protocol):
    async def record(self, patient_id: UUID, action: str, payload: dict[str, Any]) -> None: ...
