"""Escalation store backed by the ``escalations`` table."""

from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.models.escalations import escalations
from app.models.patients import patients
from app.schemas.escalations import Escalation, EscalationFilters, EscalationWithPatient


def _conditions(filters: EscalationFilters) -> list[Any]:
    conditions = []
    if filters.resolved is True:
        conditions.append(escalations.c.resolved_at.is_not(None))
    elif filters.resolved is False:
        conditions.append(escalations.c.resolved_at.is_(None))
    return conditions


class EscalationRepository:
    """Data access for escalations."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        """Initialize store with a session factory and clock."""
        self.session_factory = session_factory
        self.clock = clock

    async def create(self, patient_id: UUID, message: str, reason: str) -> Escalation:
        """Insert an unresolved escalation."""
        stmt = (
            insert(escalations)
            .values(
                patient_id=patient_id,
                message=message,
                reason=reason,
                created_at=self.clock.now(),
            )
            .returning(escalations)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.fetchone()
            await session.commit()

        return Escalation.model_validate(dict(row._mapping))

    async def find_by_id(self, escalation_id: UUID) -> Escalation | None:
        """Find escalation by ID."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(escalations).where(escalations.c.id == escalation_id)
            )
            row = result.fetchone()

        return Escalation.model_validate(dict(row._mapping)) if row else None

    async def list(self, filters: EscalationFilters) -> list[EscalationWithPatient]:
        """
        List escalations joined with patient name and phone.

        Args:
            filters: Resolution filter and pagination

        Returns:
            One page of escalations, newest first
        """
        stmt = (
            select(
                escalations,
                patients.c.name.label("patient_name"),
                patients.c.phone.label("patient_phone"),
            )
            .select_from(escalations.join(patients, escalations.c.patient_id == patients.c.id))
            .where(*_conditions(filters))
            .order_by(escalations.c.created_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.fetchall()

        return [EscalationWithPatient.model_validate(dict(row._mapping)) for row in rows]

    async def count(self, filters: EscalationFilters) -> int:
        """Count escalations matching the resolution filter."""
        stmt = select(func.count()).select_from(escalations).where(*_conditions(filters))
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def resolve(
        self,
        escalation_id: UUID,
        resolved_by: str,
        notes: str | None = None,
    ) -> Escalation | None:
        """
        Stamp resolution fields on an unresolved escalation.

        Returns:
            Updated escalation, or None when it is missing or already resolved
        """
        stmt = (
            update(escalations)
            .where(
                and_(
                    escalations.c.id == escalation_id,
                    escalations.c.resolved_at.is_(None),
                )
            )
            .values(
                resolved_at=self.clock.now(),
                resolved_by=resolved_by,
                resolution_notes=notes,
            )
            .returning(escalations)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.fetchone()
            await session.commit()

        return Escalation.model_validate(dict(row._mapping)) if row else None
