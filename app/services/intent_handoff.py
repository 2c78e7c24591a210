"""Routes low-confidence or explicitly escalated messages to a human."""

from uuid import UUID

import structlog

from app.core.queue import SEND_DOCTOR_ALERT, JobQueue
from app.middleware.logging import get_correlation_id
from app.schemas.escalations import Escalation
from app.schemas.intents import ClassifiedIntent, IntentType
from app.schemas.notifications import DoctorAlertJob
from app.services.escalation_service import EscalationService

logger = structlog.get_logger(__name__)

REASON_LOW_CONFIDENCE = "low_confidence"
REASON_REQUESTED = "escalation_requested"


class IntentHandoff:
    """Decides whether a classified message is automated or escalated."""

    def __init__(
        self,
        escalation_service: EscalationService,
        queue: JobQueue,
        confidence_threshold: float = 0.7,
    ):
        self.escalation_service = escalation_service
        self.queue = queue
        self.confidence_threshold = confidence_threshold

    def escalation_reason(self, intent: ClassifiedIntent) -> str | None:
        """Reason the message needs a human, or None for the automated flow."""
        if intent.intent == IntentType.ESCALATE:
            return REASON_REQUESTED
        if intent.confidence < self.confidence_threshold:
            return REASON_LOW_CONFIDENCE
        return None

    async def handle(
        self,
        patient_id: UUID,
        message: str,
        intent: ClassifiedIntent,
    ) -> Escalation | None:
        """
        Escalate the message when needed and alert the doctor.

        Args:
            patient_id: Sender
            message: Original message text
            intent: Classifier output for the message

        Returns:
            The created escalation, or None when the automated flow handles it
        """
        reason = self.escalation_reason(intent)
        if reason is None:
            return None

        escalation = await self.escalation_service.create(patient_id, message, reason)

        job = DoctorAlertJob(escalation_id=escalation.id, correlation_id=get_correlation_id())
        try:
            await self.queue.enqueue(SEND_DOCTOR_ALERT, job.model_dump(mode="json"))
        except Exception as e:
            logger.warning(
                "failed_to_enqueue_doctor_alert",
                escalation_id=str(escalation.id),
                error=str(e),
            )

        logger.info(
            "message_escalated",
            escalation_id=str(escalation.id),
            intent=intent.intent.value,
            confidence=intent.confidence,
        )
        return escalation
