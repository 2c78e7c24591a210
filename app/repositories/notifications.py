"""Notification ledger backed by the ``notifications_sent`` table."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.models.notifications import notifications_sent
from app.schemas.notifications import NotificationKind, NotificationRecord

logger = structlog.get_logger(__name__)


class DuplicateNotificationError(Exception):
    """A record for this (appointment, kind) pair already exists."""

    def __init__(self, appointment_id: UUID, kind: NotificationKind):
        self.appointment_id = appointment_id
        self.kind = kind
        super().__init__(f"Notification {kind.value} already recorded for {appointment_id}")


def _to_entity(row: Any) -> NotificationRecord:
    data = dict(row._mapping)
    data["kind"] = data.pop("type")
    return NotificationRecord.model_validate(data)


class NotificationRepository:
    """Dedup ledger: at most one row per (appointment_id, type)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        """Initialize store with a session factory and clock."""
        self.session_factory = session_factory
        self.clock = clock

    async def create(self, appointment_id: UUID, kind: NotificationKind) -> NotificationRecord:
        """
        Record a sent notification.

        Raises:
            DuplicateNotificationError: If the pair was already recorded
        """
        stmt = (
            insert(notifications_sent)
            .values(appointment_id=appointment_id, type=kind.value, sent_at=self.clock.now())
            .returning(notifications_sent)
        )
        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                row = result.fetchone()
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateNotificationError(appointment_id, kind) from e

        record = _to_entity(row)
        logger.info(
            "notification_recorded",
            notification_id=str(record.id),
            appointment_id=str(appointment_id),
            kind=kind.value,
        )
        return record

    async def find_by_appointment_and_kind(
        self,
        appointment_id: UUID,
        kind: NotificationKind,
    ) -> NotificationRecord | None:
        """Check whether a given kind was already sent for an appointment."""
        stmt = select(notifications_sent).where(
            notifications_sent.c.appointment_id == appointment_id,
            notifications_sent.c.type == kind.value,
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.fetchone()

        return _to_entity(row) if row else None

    async def find_by_appointment_id(self, appointment_id: UUID) -> list[NotificationRecord]:
        """All notifications for an appointment, most recent first."""
        stmt = (
            select(notifications_sent)
            .where(notifications_sent.c.appointment_id == appointment_id)
            .order_by(notifications_sent.c.sent_at.desc())
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.fetchall()

        return [_to_entity(row) for row in rows]
