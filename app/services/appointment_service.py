"""Appointment scheduling: booking, rescheduling, cancellation and status changes."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

import structlog

from app.core import calendar_rules
from app.core.clock import Clock
from app.core.exceptions import (
    CancellationWindowException,
    ConflictException,
    InvalidStateException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from app.core.metrics import appointments_booked_total
from app.core.queue import SEND_NOTIFICATION, JobQueue
from app.middleware.logging import get_correlation_id
from app.repositories.interfaces import AppointmentStore, AuditLogStore, PatientStore
from app.schemas.appointments import Appointment, AppointmentStatus, TimeSlot
from app.schemas.notifications import NotificationJob, NotificationKind
from app.schemas.patients import Patient
from app.services.availability import AvailabilityCalculator

logger = structlog.get_logger(__name__)

CANCELLATION_NOTICE_HOURS = 12

VALID_STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in VALID_STATUS_TRANSITIONS.items() if not targets
)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check a status change against the transition table."""
    return target in VALID_STATUS_TRANSITIONS[current]


class AppointmentService:
    """Service owning appointment status and slot changes."""

    def __init__(
        self,
        appointments: AppointmentStore,
        patients: PatientStore,
        audit_logs: AuditLogStore,
        availability: AvailabilityCalculator,
        queue: JobQueue,
        clock: Clock,
    ):
        """Initialize service with its stores, availability rules, queue and clock."""
        self.appointments = appointments
        self.patients = patients
        self.audit_logs = audit_logs
        self.availability = availability
        self.queue = queue
        self.clock = clock

    async def book(self, patient_id: UUID, scheduled_at: datetime) -> Appointment:
        """
        Book a new appointment.

        Args:
            patient_id: Patient booking the slot
            scheduled_at: Requested slot start

        Returns:
            Created appointment in ``scheduled`` status

        Raises:
            ValidationException: If the slot is not bookable or the patient has no consent
            NotFoundException: If the patient does not exist
            ConflictException: If the slot is already taken
        """
        slot = self._require_valid_slot(scheduled_at)
        patient = await self._require_consenting_patient(patient_id)

        existing = await self.appointments.find_by_slot(slot)
        if existing:
            raise ConflictException(
                "Slot already booked. Please choose another time.",
                context={"scheduled_at": scheduled_at.isoformat()},
            )

        # The unique active-slot index re-checks this atomically with the insert
        appointment = await self.appointments.create(patient_id, scheduled_at)
        appointments_booked_total.inc()

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            patient_id=str(patient_id),
            scheduled_at=appointment.scheduled_at.isoformat(),
        )

        await self._audit(
            patient_id,
            "appointment_booked",
            {
                "appointment_id": str(appointment.id),
                "scheduled_at": appointment.scheduled_at.isoformat(),
            },
        )
        await self._enqueue_notification(NotificationKind.CONFIRMATION, appointment, patient)

        return appointment

    async def reschedule(self, appointment_id: UUID, new_scheduled_at: datetime) -> Appointment:
        """
        Move an appointment to another slot. Status is left unchanged.

        Raises:
            NotFoundException: If the appointment does not exist
            InvalidStateException: If the appointment is in a terminal status
            ValidationException: If the new slot is not bookable
            ConflictException: If the new slot is held by another appointment
        """
        appointment = await self._require_appointment(appointment_id)

        if appointment.status in TERMINAL_STATUSES:
            raise InvalidStateException(
                f"Cannot reschedule a {appointment.status.value} appointment",
                context={
                    "appointment_id": str(appointment_id),
                    "current_status": appointment.status.value,
                },
            )

        slot = self._require_valid_slot(new_scheduled_at)

        existing = await self.appointments.find_by_slot(slot, exclude_id=appointment_id)
        if existing:
            raise ConflictException(
                "New slot already booked. Please choose another time.",
                context={
                    "appointment_id": str(appointment_id),
                    "scheduled_at": new_scheduled_at.isoformat(),
                },
            )

        updated = await self.appointments.update(appointment_id, scheduled_at=new_scheduled_at)

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment_id),
            old_scheduled_at=appointment.scheduled_at.isoformat(),
            new_scheduled_at=updated.scheduled_at.isoformat(),
        )

        await self._audit(
            appointment.patient_id,
            "appointment_rescheduled",
            {
                "appointment_id": str(appointment_id),
                "old_scheduled_at": appointment.scheduled_at.isoformat(),
                "new_scheduled_at": updated.scheduled_at.isoformat(),
            },
        )

        return updated

    async def cancel(self, appointment_id: UUID, reason: str | None = None) -> Appointment:
        """
        Cancel an appointment, freeing its slot.

        Cancellation needs more than 12 hours of notice; exactly 12 hours is
        already too late.

        Raises:
            NotFoundException: If the appointment does not exist
            InvalidStateException: If the appointment is in a terminal status
            CancellationWindowException: If the appointment starts within 12 hours
        """
        appointment = await self._require_appointment(appointment_id)

        if appointment.status in TERMINAL_STATUSES:
            raise InvalidStateException(
                f"Cannot cancel a {appointment.status.value} appointment",
                context={
                    "appointment_id": str(appointment_id),
                    "current_status": appointment.status.value,
                },
            )

        if calendar_rules.within_hours(
            appointment.scheduled_at, CANCELLATION_NOTICE_HOURS, self.clock
        ):
            raise CancellationWindowException(
                f"Appointments can only be cancelled more than "
                f"{CANCELLATION_NOTICE_HOURS} hours in advance",
                context={
                    "appointment_id": str(appointment_id),
                    "scheduled_at": appointment.scheduled_at.isoformat(),
                    "hours_until": round(
                        calendar_rules.hours_until(appointment.scheduled_at, self.clock), 2
                    ),
                },
            )

        updated = await self.appointments.update(
            appointment_id, status=AppointmentStatus.CANCELLED
        )

        logger.info("appointment_cancelled", appointment_id=str(appointment_id), reason=reason)

        await self._audit(
            appointment.patient_id,
            "appointment_cancelled",
            {"appointment_id": str(appointment_id), "reason": reason},
        )

        patient = await self.patients.find_by_id(appointment.patient_id)
        if patient:
            await self._enqueue_notification(
                NotificationKind.CANCELLATION,
                updated,
                patient,
                {"reason": reason} if reason else None,
            )

        return updated

    async def update_status(
        self,
        appointment_id: UUID,
        new_status: AppointmentStatus,
        reason: str | None = None,
    ) -> Appointment:
        """
        Apply a status transition from the transition table.

        A move to ``cancelled`` goes through ``cancel`` so the notice window
        and the patient notification apply.

        Args:
            appointment_id: Appointment ID
            new_status: Target status
            reason: Cancellation reason, used only for ``cancelled``

        Raises:
            NotFoundException: If the appointment does not exist
            InvalidTransitionException: If the transition is not allowed
            CancellationWindowException: If cancelling within 12 hours of the slot
        """
        appointment = await self._require_appointment(appointment_id)

        if not can_transition(appointment.status, new_status):
            raise InvalidTransitionException(
                f"Cannot transition from {appointment.status.value} to {new_status.value}",
                context={
                    "appointment_id": str(appointment_id),
                    "from_status": appointment.status.value,
                    "to_status": new_status.value,
                },
            )

        if new_status == AppointmentStatus.CANCELLED:
            return await self.cancel(appointment_id, reason)

        updated = await self.appointments.update(appointment_id, status=new_status)

        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            from_status=appointment.status.value,
            to_status=new_status.value,
        )

        await self._audit(
            appointment.patient_id,
            "appointment_status_updated",
            {
                "appointment_id": str(appointment_id),
                "old_status": appointment.status.value,
                "new_status": new_status.value,
            },
        )

        return updated

    async def get_appointment(self, appointment_id: UUID) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        return await self._require_appointment(appointment_id)

    async def list_for_patient(self, patient_id: UUID) -> list[Appointment]:
        """List a patient's appointments, newest first."""
        return await self.appointments.find_by_patient_id(patient_id)

    async def check_availability(self, day: date) -> list[TimeSlot]:
        """
        Free slots for a calendar day.

        Args:
            day: Clinic-local calendar day

        Returns:
            Generated slots not held by an active appointment
        """
        slots = self.availability.generate_slots(day)
        if not slots:
            return []

        booked = await self.appointments.find_by_date_range(
            slots[0].start_time, slots[-1].end_time, exclude_cancelled=True
        )
        booked_slots = [self.availability.slot_for(a.scheduled_at) for a in booked]

        return [
            slot
            for slot in slots
            if not any(self.availability.overlaps(slot, taken) for taken in booked_slots)
        ]

    def _require_valid_slot(self, scheduled_at: datetime) -> TimeSlot:
        if scheduled_at.tzinfo is None:
            raise ValidationException(
                "Appointment time must include a timezone offset",
                context={"scheduled_at": scheduled_at.isoformat()},
            )

        slot = self.availability.slot_for(scheduled_at)
        if not self.availability.is_valid_slot(slot):
            raise ValidationException(
                "Invalid time slot. Appointments are available on Saturdays "
                "at 09:00, 11:00, 13:00 and 15:00, excluding holidays.",
                context={"scheduled_at": scheduled_at.isoformat()},
            )
        return slot

    async def _require_appointment(self, appointment_id: UUID) -> Appointment:
        appointment = await self.appointments.find_by_id(appointment_id)
        if not appointment:
            raise NotFoundException(
                "Appointment not found", context={"appointment_id": str(appointment_id)}
            )
        return appointment

    async def _require_consenting_patient(self, patient_id: UUID) -> Patient:
        patient = await self.patients.find_by_id(patient_id)
        if not patient:
            raise NotFoundException("Patient not found", context={"patient_id": str(patient_id)})
        if not patient.has_consent:
            raise ValidationException(
                "Patient has not given consent", context={"patient_id": str(patient_id)}
            )
        return patient

    async def _audit(self, patient_id: UUID, action: str, payload: dict[str, Any]) -> None:
        try:
            await self.audit_logs.record(patient_id, action, payload)
        except Exception as e:
            # Audit trail must not fail the business operation
            logger.error("audit_log_failed", action=action, error=str(e))

    async def _enqueue_notification(
        self,
        kind: NotificationKind,
        appointment: Appointment,
        patient: Patient,
        metadata: dict[str, str] | None = None,
    ) -> None:
        job = NotificationJob(
            kind=kind,
            appointment_id=appointment.id,
            patient_id=patient.id,
            phone=patient.phone,
            metadata=metadata or {},
            correlation_id=get_correlation_id(),
        )
        try:
            await self.queue.enqueue(
                SEND_NOTIFICATION,
                job.model_dump(mode="json"),
                job_id=f"{kind.value}:{appointment.id}",
            )
        except Exception as e:
            logger.warning(
                "failed_to_enqueue_notification",
                kind=kind.value,
                appointment_id=str(appointment.id),
                error=str(e),
            )
