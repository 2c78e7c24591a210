"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    Uuid,
    text,
)

from app.models.base import UTCDateTime, metadata

ACTIVE_SLOT_PREDICATE = "status <> 'cancelled'"

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    # Slot start; the 2-hour block is implied
    Column("scheduled_at", UTCDateTime, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    # Audit fields
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'cancelled', 'completed', 'no_show')",
        name="appointments_status_check",
    ),
    Index("idx_appointments_patient_id", "patient_id"),
    Index("idx_appointments_scheduled_at", "scheduled_at"),
    Index("idx_appointments_status", "status"),
    # At most one active appointment per slot start
    Index(
        "uq_appointments_active_slot",
        "scheduled_at",
        unique=True,
        postgresql_where=text(ACTIVE_SLOT_PREDICATE),
        sqlite_where=text(ACTIVE_SLOT_PREDICATE),
    ),
)
