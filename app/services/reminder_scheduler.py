"""Hourly sweep that enqueues 72h and 48h appointment reminders."""

from datetime import timedelta

import structlog

from app.core import calendar_rules
from app.core.clock import Clock
from app.core.metrics import reminders_enqueued_total
from app.core.queue import SEND_NOTIFICATION, JobQueue
from app.middleware.logging import get_correlation_id
from app.repositories.interfaces import AppointmentStore, NotificationLedger, PatientStore
from app.schemas.appointments import Appointment
from app.schemas.notifications import EnqueuedReminder, NotificationJob, NotificationKind
from app.schemas.patients import Patient

logger = structlog.get_logger(__name__)

# kind -> [lower, upper) hours before the appointment; one band per hourly run
REMINDER_WINDOWS: dict[NotificationKind, tuple[int, int]] = {
    NotificationKind.REMINDER_72H: (72, 73),
    NotificationKind.REMINDER_48H: (48, 49),
}

SWEEP_HORIZON_HOURS = max(upper for _, upper in REMINDER_WINDOWS.values())


class ReminderScheduler:
    """
    Finds appointments entering a reminder window and enqueues send jobs.

    The sweep does not know how often it runs; the bands assume hourly
    triggering. Already-recorded notifications are skipped, so re-running a
    sweep is harmless.
    """

    def __init__(
        self,
        appointments: AppointmentStore,
        patients: PatientStore,
        ledger: NotificationLedger,
        queue: JobQueue,
        clock: Clock,
    ):
        """Initialize scheduler with stores, ledger, queue and clock."""
        self.appointments = appointments
        self.patients = patients
        self.ledger = ledger
        self.queue = queue
        self.clock = clock

    def due_reminders(self, appointment: Appointment) -> list[NotificationKind]:
        """Reminder kinds whose window contains the appointment right now."""
        hours = calendar_rules.hours_until(appointment.scheduled_at, self.clock)
        return [
            kind
            for kind, (lower, upper) in REMINDER_WINDOWS.items()
            if lower <= hours < upper
        ]

    async def run_reminder_sweep(self) -> list[EnqueuedReminder]:
        """
        Run one sweep.

        Returns:
            Reminders enqueued during this run
        """
        now = self.clock.now()
        horizon = now + timedelta(hours=SWEEP_HORIZON_HOURS)

        candidates = await self.appointments.find_by_date_range(
            now, horizon, exclude_cancelled=True
        )
        logger.info("reminder_sweep_started", candidates=len(candidates))

        enqueued: list[EnqueuedReminder] = []
        for appointment in candidates:
            kinds = self.due_reminders(appointment)
            if not kinds:
                continue

            patient = await self.patients.find_by_id(appointment.patient_id)
            if not patient:
                logger.warning(
                    "reminder_patient_not_found",
                    appointment_id=str(appointment.id),
                    patient_id=str(appointment.patient_id),
                )
                continue
            if not patient.has_consent:
                logger.warning(
                    "reminder_skipped_no_consent",
                    appointment_id=str(appointment.id),
                    patient_id=str(patient.id),
                )
                continue

            for kind in kinds:
                already_sent = await self.ledger.find_by_appointment_and_kind(appointment.id, kind)
                if already_sent:
                    logger.debug(
                        "reminder_already_sent",
                        appointment_id=str(appointment.id),
                        kind=kind.value,
                    )
                    continue

                await self._enqueue(appointment, patient, kind)
                enqueued.append(EnqueuedReminder(appointment_id=appointment.id, kind=kind))

        logger.info("reminder_sweep_completed", enqueued=len(enqueued))
        return enqueued

    async def _enqueue(
        self,
        appointment: Appointment,
        patient: Patient,
        kind: NotificationKind,
    ) -> None:
        job = NotificationJob(
            kind=kind,
            appointment_id=appointment.id,
            patient_id=patient.id,
            phone=patient.phone,
            metadata={"patient_name": patient.name},
            correlation_id=get_correlation_id(),
        )
        await self.queue.enqueue(
            SEND_NOTIFICATION,
            job.model_dump(mode="json"),
            job_id=f"{kind.value}:{appointment.id}",
        )
        reminders_enqueued_total.labels(kind=kind.value).inc()
        logger.info("reminder_enqueued", appointment_id=str(appointment.id), kind=kind.value)
