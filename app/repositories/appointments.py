"""Appointment store backed by the ``appointments`` table."""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.core.exceptions import ConflictException, NotFoundException
from app.models.appointments import appointments
from app.schemas.appointments import Appointment, AppointmentStatus, TimeSlot

logger = structlog.get_logger(__name__)

# Names the active-slot unique index shows up under in driver error messages
_SLOT_CONSTRAINT_MARKERS = ("uq_appointments_active_slot", "appointments.scheduled_at")


def _is_slot_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _SLOT_CONSTRAINT_MARKERS)


def _to_entity(row: Any) -> Appointment:
    return Appointment.model_validate(dict(row._mapping))


class AppointmentRepository:
    """Data access for appointments.

    Each call runs in its own session. Slot exclusivity is enforced by the
    partial unique index ``uq_appointments_active_slot``; a write that trips
    it surfaces as ``ConflictException``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        """Initialize store with a session factory and clock."""
        self.session_factory = session_factory
        self.clock = clock

    async def create(self, patient_id: UUID, scheduled_at: datetime) -> Appointment:
        """
        Insert a new appointment in ``scheduled`` status.

        Args:
            patient_id: Owning patient
            scheduled_at: Slot start

        Returns:
            Created appointment

        Raises:
            ConflictException: If another active appointment holds the slot
        """
        now = self.clock.now()
        stmt = (
            insert(appointments)
            .values(
                patient_id=patient_id,
                scheduled_at=scheduled_at,
                status=AppointmentStatus.SCHEDULED.value,
                created_at=now,
                updated_at=now,
            )
            .returning(appointments)
        )

        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                row = result.fetchone()
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if not _is_slot_conflict(e):
                    raise
                logger.info("appointment_slot_taken", scheduled_at=scheduled_at.isoformat())
                raise ConflictException(
                    "Slot already booked. Please choose another time.",
                    context={"scheduled_at": scheduled_at.isoformat()},
                ) from e

        appointment = _to_entity(row)
        logger.info("appointment_created", appointment_id=str(appointment.id))
        return appointment

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Find appointment by ID."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(appointments).where(appointments.c.id == appointment_id)
            )
            row = result.fetchone()

        return _to_entity(row) if row else None

    async def find_by_patient_id(self, patient_id: UUID) -> list[Appointment]:
        """All appointments for a patient, newest slot first."""
        stmt = (
            select(appointments)
            .where(appointments.c.patient_id == patient_id)
            .order_by(appointments.c.scheduled_at.desc())
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.fetchall()

        return [_to_entity(row) for row in rows]

    async def find_by_slot(
        self,
        slot: TimeSlot,
        exclude_id: UUID | None = None,
    ) -> Appointment | None:
        """
        Find the active appointment occupying a slot.

        Args:
            slot: Slot to check
            exclude_id: Appointment to ignore (the one being rescheduled)

        Returns:
            Non-cancelled appointment starting inside the slot, or None
        """
        conditions = [
            appointments.c.scheduled_at >= slot.start_time,
            appointments.c.scheduled_at < slot.end_time,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        async with self.session_factory() as session:
            result = await session.execute(select(appointments).where(and_(*conditions)).limit(1))
            row = result.fetchone()

        return _to_entity(row) if row else None

    async def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
        exclude_cancelled: bool = False,
    ) -> list[Appointment]:
        """Appointments with ``start <= scheduled_at <= end``, earliest first."""
        conditions = [
            appointments.c.scheduled_at >= start,
            appointments.c.scheduled_at <= end,
        ]
        if exclude_cancelled:
            conditions.append(appointments.c.status != AppointmentStatus.CANCELLED.value)

        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.scheduled_at)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.fetchall()

        logger.debug(
            "appointments_found_in_range",
            start=start.isoformat(),
            end=end.isoformat(),
            count=len(rows),
        )
        return [_to_entity(row) for row in rows]

    async def update(self, appointment_id: UUID, **values: Any) -> Appointment:
        """
        Update appointment columns and stamp ``updated_at``.

        Raises:
            NotFoundException: If the appointment does not exist
            ConflictException: If a new ``scheduled_at`` collides with an active slot
        """
        update_values = {
            key: value.value if isinstance(value, AppointmentStatus) else value
            for key, value in values.items()
        }
        update_values["updated_at"] = self.clock.now()

        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(**update_values)
            .returning(appointments)
        )

        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                row = result.fetchone()
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if not _is_slot_conflict(e):
                    raise
                scheduled_at = update_values.get("scheduled_at")
                raise ConflictException(
                    "New slot already booked. Please choose another time.",
                    context={
                        "appointment_id": str(appointment_id),
                        "scheduled_at": scheduled_at.isoformat() if scheduled_at else None,
                    },
                ) from e

        if not row:
            raise NotFoundException(
                "Appointment not found", context={"appointment_id": str(appointment_id)}
            )

        return _to_entity(row)
