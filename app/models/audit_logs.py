"""Audit log table for LGPD activity tracking."""

from uuid import uuid4

from sqlalchemy import JSON, Column, ForeignKey, Index, String, Table, Uuid

from app.models.base import UTCDateTime, metadata

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("action", String(100), nullable=False),
    Column("payload", JSON, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("idx_audit_logs_patient_id", "patient_id"),
    Index("idx_audit_logs_action", "action"),
)
