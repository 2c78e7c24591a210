"""Audit log store."""

from typing import Any
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.models.audit_logs import audit_logs


class AuditLogRepository:
    """Append-only audit trail of appointment mutations."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        """Initialize store with a session factory and clock."""
        self.session_factory = session_factory
        self.clock = clock

    async def record(self, patient_id: UUID, action: str, payload: dict[str, Any]) -> None:
        """Append an audit entry. ``payload`` must be JSON-serialisable."""
        async with self.session_factory() as session:
            await session.execute(
                insert(audit_logs).values(
                    patient_id=patient_id,
                    action=action,
                    payload=payload,
                    created_at=self.clock.now(),
                )
            )
            await session.commit()
