"""Persistence stores used by the scheduling core."""

from app.repositories.appointments import AppointmentRepository
from app.repositories.audit_logs import AuditLogRepository
from app.repositories.escalations import EscalationRepository
from app.repositories.notifications import DuplicateNotificationError, NotificationRepository
from app.repositories.patients import PatientRepository

__all__ = [
    "AppointmentRepository",
    "AuditLogRepository",
    "DuplicateNotificationError",
    "EscalationRepository",
    "NotificationRepository",
    "PatientRepository",
]
