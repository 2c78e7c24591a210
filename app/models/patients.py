"""Patient table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, Index, String, Table, Uuid

from app.models.base import UTCDateTime, metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Contact (E.164, used as WhatsApp destination)
    Column("phone", String(20), nullable=False, unique=True),
    Column("cpf", String(11), nullable=True),
    Column("name", String(255), nullable=False),
    # LGPD consent; no messages are sent without it
    Column("consent_given_at", UTCDateTime, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("idx_patients_cpf", "cpf"),
)
