"""Database models."""

from app.models.appointments import appointments
from app.models.audit_logs import audit_logs
from app.models.base import metadata
from app.models.escalations import escalations
from app.models.notifications import notifications_sent
from app.models.patients import patients

__all__ = [
    "appointments",
    "audit_logs",
    "escalations",
    "metadata",
    "notifications_sent",
    "patients",
]
