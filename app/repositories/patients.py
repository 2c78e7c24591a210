"""Patient store backed by the ``patients`` table."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.models.patients import patients
from app.schemas.patients import Patient


def _to_entity(row: Any) -> Patient:
    return Patient.model_validate(dict(row._mapping))


class PatientRepository:
    """Read access to patients, plus creation for seeding."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        """Initialize store with a session factory and clock."""
        self.session_factory = session_factory
        self.clock = clock

    async def find_by_id(self, patient_id: UUID) -> Patient | None:
        """Find patient by ID."""
        async with self.session_factory() as session:
            result = await session.execute(select(patients).where(patients.c.id == patient_id))
            row = result.fetchone()

        return _to_entity(row) if row else None

    async def find_by_phone(self, phone: str) -> Patient | None:
        """Find patient by E.164 phone number."""
        async with self.session_factory() as session:
            result = await session.execute(select(patients).where(patients.c.phone == phone))
            row = result.fetchone()

        return _to_entity(row) if row else None

    async def create(
        self,
        phone: str,
        name: str,
        cpf: str | None = None,
        consent_given_at: datetime | None = None,
    ) -> Patient:
        """Insert a patient record."""
        stmt = (
            insert(patients)
            .values(
                phone=phone,
                name=name,
                cpf=cpf,
                consent_given_at=consent_given_at,
                created_at=self.clock.now(),
            )
            .returning(patients)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.fetchone()
            await session.commit()

        return _to_entity(row)
