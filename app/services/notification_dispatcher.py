"""Processes queued notification jobs: re-validate, render, send, record."""

from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from app.core.exceptions import MessageChannelException
from app.core.metrics import notifications_dispatched_total
from app.repositories.interfaces import (
    AppointmentStore,
    EscalationStore,
    NotificationLedger,
    PatientStore,
)
from app.repositories.notifications import DuplicateNotificationError
from app.schemas.appointments import AppointmentStatus
from app.schemas.notifications import (
    DispatchOutcome,
    NotificationJob,
    NotificationKind,
    TemplateData,
)
from app.services import notification_templates
from app.services.message_channel import MessageChannel

logger = structlog.get_logger(__name__)

UNKNOWN_PATIENT_NAME = "Paciente não identificado"


class NotificationDispatcher:
    """
    Delivers one notification job.

    Safe to run more than once for the same job: the ledger's
    ``(appointment_id, kind)`` uniqueness decides whether a message was
    already delivered, and losing that race counts as success.
    """

    def __init__(
        self,
        appointments: AppointmentStore,
        patients: PatientStore,
        ledger: NotificationLedger,
        escalations: EscalationStore,
        channel: MessageChannel,
        timezone: ZoneInfo,
        clinic_name: str | None = None,
        doctor_name: str | None = None,
        doctor_phone: str | None = None,
    ):
        self.appointments = appointments
        self.patients = patients
        self.ledger = ledger
        self.escalations = escalations
        self.channel = channel
        self.timezone = timezone
        self.clinic_name = clinic_name
        self.doctor_name = doctor_name
        self.doctor_phone = doctor_phone

    async def dispatch(self, job: NotificationJob) -> DispatchOutcome:
        """
        Process a ``send_notification`` job.

        Args:
            job: Queued notification job

        Returns:
            ``sent``, ``already_sent`` or ``dropped``

        Raises:
            MessageChannelException: If the channel failed to deliver and a retry may
                succeed. Permanent failures are logged and reported as ``dropped``.
        """
        outcome = await self._dispatch(job)
        notifications_dispatched_total.labels(kind=job.kind.value, outcome=outcome.value).inc()
        return outcome

    async def _dispatch(self, job: NotificationJob) -> DispatchOutcome:
        log = logger.bind(
            appointment_id=str(job.appointment_id),
            kind=job.kind.value,
            correlation_id=job.correlation_id,
        )

        appointment = await self.appointments.find_by_id(job.appointment_id)
        if not appointment:
            log.warning("notification_dropped_appointment_not_found")
            return DispatchOutcome.DROPPED

        # A cancellation notice is the one message meant for a cancelled appointment
        if (
            appointment.status == AppointmentStatus.CANCELLED
            and job.kind != NotificationKind.CANCELLATION
        ):
            log.info("notification_dropped_appointment_cancelled")
            return DispatchOutcome.DROPPED

        patient = await self.patients.find_by_id(job.patient_id)
        if not patient:
            log.warning("notification_dropped_patient_not_found", patient_id=str(job.patient_id))
            return DispatchOutcome.DROPPED
        if not patient.has_consent:
            log.warning("notification_dropped_no_consent", patient_id=str(patient.id))
            return DispatchOutcome.DROPPED

        if await self.ledger.find_by_appointment_and_kind(appointment.id, job.kind):
            log.info("notification_already_sent")
            return DispatchOutcome.ALREADY_SENT

        body = notification_templates.render(
            job.kind,
            TemplateData(
                patient_name=job.metadata.get("patient_name") or patient.name,
                appointment_date=notification_templates.format_brazilian_date(
                    appointment.scheduled_at, self.timezone
                ),
                clinic_name=self.clinic_name,
                doctor_name=self.doctor_name,
                reason=job.metadata.get("reason"),
            ),
        )

        result = await self.channel.send(job.phone or patient.phone, body)
        if not result.success:
            if not result.retryable:
                log.warning(
                    "notification_dropped_permanent_failure",
                    error=result.error,
                    provider_status=result.status_code,
                )
                return DispatchOutcome.DROPPED
            log.error("notification_send_failed", error=result.error)
            raise MessageChannelException(
                result.error or "Message delivery failed",
                context={
                    "appointment_id": str(appointment.id),
                    "kind": job.kind.value,
                    "provider_status": result.status_code,
                },
            )

        try:
            await self.ledger.create(appointment.id, job.kind)
        except DuplicateNotificationError:
            log.info("notification_recorded_concurrently")

        log.info("notification_sent", message_id=result.message_id)
        return DispatchOutcome.SENT

    async def send_doctor_alert(self, escalation_id: UUID) -> DispatchOutcome:
        """
        Alert the doctor about an escalation.

        Not recorded in the ledger. Does nothing when no doctor phone is
        configured.

        Raises:
            MessageChannelException: If the channel failed to deliver and a retry may
                succeed
        """
        if not self.doctor_phone:
            logger.info("doctor_alert_skipped_no_phone", escalation_id=str(escalation_id))
            return DispatchOutcome.DROPPED

        escalation = await self.escalations.find_by_id(escalation_id)
        if not escalation:
            logger.warning("doctor_alert_escalation_not_found", escalation_id=str(escalation_id))
            return DispatchOutcome.DROPPED

        patient = await self.patients.find_by_id(escalation.patient_id)

        body = notification_templates.render(
            NotificationKind.DOCTOR_ALERT,
            TemplateData(
                patient_name=patient.name if patient else UNKNOWN_PATIENT_NAME,
                appointment_date=notification_templates.format_brazilian_date(
                    escalation.created_at, self.timezone
                ),
                escalation_reason=escalation.reason,
            ),
        )

        result = await self.channel.send(self.doctor_phone, body)
        if not result.success:
            if not result.retryable:
                logger.warning(
                    "doctor_alert_dropped_permanent_failure",
                    escalation_id=str(escalation_id),
                    error=result.error,
                    provider_status=result.status_code,
                )
                return DispatchOutcome.DROPPED
            raise MessageChannelException(
                result.error or "Doctor alert delivery failed",
                context={"escalation_id": str(escalation_id)},
            )

        logger.info("doctor_alert_sent", escalation_id=str(escalation_id))
        notifications_dispatched_total.labels(
            kind=NotificationKind.DOCTOR_ALERT.value, outcome=DispatchOutcome.SENT.value
        ).inc()
        return DispatchOutcome.SENT
