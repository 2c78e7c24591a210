"""FastAPI dependencies and service wiring."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.clock import Clock
from app.core.queue import JobQueue
from app.core.security import decode_access_token
from app.repositories import (
    AppointmentRepository,
    AuditLogRepository,
    EscalationRepository,
    NotificationRepository,
    PatientRepository,
)
from app.services.appointment_service import AppointmentService
from app.services.auth_service import AuthService
from app.services.availability import AvailabilityCalculator
from app.services.escalation_service import EscalationService
from app.services.intent_handoff import IntentHandoff
from app.services.message_channel import MessageChannel
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.reminder_scheduler import ReminderScheduler

# Security
security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Services built once per process and shared by requests or jobs."""

    appointments: AppointmentService
    escalations: EscalationService
    reminders: ReminderScheduler
    dispatcher: NotificationDispatcher
    intent_handoff: IntentHandoff
    auth: AuthService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    clock: Clock,
    queue: JobQueue,
    channel: MessageChannel,
) -> Services:
    """
    Wire stores and services.

    Args:
        session_factory: Session factory the stores open sessions from
        settings: Application settings
        clock: Time source for every time-window rule
        queue: Job queue for notification and alert jobs
        channel: Outbound message channel

    Returns:
        Fully wired services
    """
    appointment_store = AppointmentRepository(session_factory, clock)
    patient_store = PatientRepository(session_factory, clock)
    ledger = NotificationRepository(session_factory, clock)
    escalation_store = EscalationRepository(session_factory, clock)
    audit_logs = AuditLogRepository(session_factory, clock)

    escalation_service = EscalationService(escalation_store)

    return Services(
        appointments=AppointmentService(
            appointments=appointment_store,
            patients=patient_store,
            audit_logs=audit_logs,
            availability=AvailabilityCalculator(clock, settings.clinic_tz),
            queue=queue,
            clock=clock,
        ),
        escalations=escalation_service,
        reminders=ReminderScheduler(
            appointments=appointment_store,
            patients=patient_store,
            ledger=ledger,
            queue=queue,
            clock=clock,
        ),
        dispatcher=NotificationDispatcher(
            appointments=appointment_store,
            patients=patient_store,
            ledger=ledger,
            escalations=escalation_store,
            channel=channel,
            timezone=settings.clinic_tz,
            clinic_name=settings.clinic_name,
            doctor_name=settings.doctor_name,
            doctor_phone=settings.doctor_phone,
        ),
        intent_handoff=IntentHandoff(
            escalation_service,
            queue,
            confidence_threshold=settings.intent_confidence_threshold,
        ),
        auth=AuthService(settings),
    )


def get_services(request: Request) -> Services:
    """Services attached to the application at startup."""
    return request.app.state.services


def get_appointment_service(request: Request) -> AppointmentService:
    """Appointment service for the current request."""
    return get_services(request).appointments


def get_escalation_service(request: Request) -> EscalationService:
    """Escalation service for the current request."""
    return get_services(request).escalations


def get_auth_service(request: Request) -> AuthService:
    """Auth service for the current request."""
    return get_services(request).auth


async def get_current_operator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """
    Extract and validate the operator from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Operator username from the token

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    payload = decode_access_token(credentials.credentials) if credentials else None

    operator = payload.get("sub") if payload else None
    if not operator or not isinstance(operator, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return operator


# Type aliases for dependency injection
CurrentOperator = Annotated[str, Depends(get_current_operator)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
EscalationServiceDep = Annotated[EscalationService, Depends(get_escalation_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
