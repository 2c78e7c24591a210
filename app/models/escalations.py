"""Escalations table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)

from app.models.base import UTCDateTime, metadata

escalations = Table(
    "escalations",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("message", Text, nullable=False),
    Column("reason", String(255), nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    # Resolution (single-shot)
    Column("resolved_at", UTCDateTime, nullable=True),
    Column("resolved_by", String(255), nullable=True),
    Column("resolution_notes", Text, nullable=True),
    CheckConstraint(
        "(resolved_at IS NULL AND resolved_by IS NULL) "
        "OR (resolved_at IS NOT NULL AND resolved_by IS NOT NULL)",
        name="escalations_resolution_pair_check",
    ),
    Index("idx_escalations_patient_id", "patient_id"),
    Index("idx_escalations_resolved_at", "resolved_at"),
    Index("idx_escalations_created_at", "created_at"),
)
