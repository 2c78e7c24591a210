"""Sent-notification ledger used to suppress duplicate patient messages."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    UniqueConstraint,
    Uuid,
)

from app.models.base import UTCDateTime, metadata

notifications_sent = Table(
    "notifications_sent",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("type", String(50), nullable=False),
    Column("sent_at", UTCDateTime, nullable=False),
    CheckConstraint(
        "type IN ('reminder_72h', 'reminder_48h', 'confirmation', 'cancellation', "
        "'doctor_alert')",
        name="notifications_sent_type_check",
    ),
    UniqueConstraint("appointment_id", "type", name="uq_notifications_sent_appointment_type"),
    Index("idx_notifications_sent_appointment", "appointment_id"),
    Index("idx_notifications_sent_sent_at", "sent_at"),
)
