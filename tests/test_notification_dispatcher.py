"""Tests for notification delivery and the dedup ledger."""

from datetime import datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from app.core.exceptions import MessageChannelException
from app.dependencies import Services
from app.repositories import (
    AppointmentRepository,
    DuplicateNotificationError,
    EscalationRepository,
    NotificationRepository,
    PatientRepository,
)
from app.schemas.appointments import AppointmentStatus
from app.schemas.notifications import DispatchOutcome, NotificationJob, NotificationKind
from app.services.notification_dispatcher import UNKNOWN_PATIENT_NAME, NotificationDispatcher
from tests.fakes import FakeChannel

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
NINE = datetime(2025, 2, 15, 9, 0, tzinfo=SAO_PAULO)
DOCTOR_PHONE = "+5511977776666"


class RacingLedger:
    """Ledger whose lookups never see the concurrent writer's record."""

    def __init__(self, ledger: NotificationRepository):
        self.ledger = ledger

    async def create(self, appointment_id, kind):
        return await self.ledger.create(appointment_id, kind)

    async def find_by_appointment_and_kind(self, appointment_id, kind):
        return None

    async def find_by_appointment_id(self, appointment_id):
        return await self.ledger.find_by_appointment_id(appointment_id)


@pytest.fixture
def appointment_store(session_factory, clock) -> AppointmentRepository:
    return AppointmentRepository(session_factory, clock)


@pytest.fixture
def ledger(session_factory, clock) -> NotificationRepository:
    return NotificationRepository(session_factory, clock)


@pytest.fixture
def escalation_store(session_factory, clock) -> EscalationRepository:
    return EscalationRepository(session_factory, clock)


def build_dispatcher(session_factory, clock, channel, ledger=None, doctor_phone=None):
    return NotificationDispatcher(
        appointments=AppointmentRepository(session_factory, clock),
        patients=PatientRepository(session_factory, clock),
        ledger=ledger or NotificationRepository(session_factory, clock),
        escalations=EscalationRepository(session_factory, clock),
        channel=channel,
        timezone=SAO_PAULO,
        clinic_name="Clínica Sábado",
        doctor_name="Dra. Helena",
        doctor_phone=doctor_phone,
    )


def make_job(
    appointment, patient, kind=NotificationKind.REMINDER_72H, **metadata
) -> NotificationJob:
    return NotificationJob(
        kind=kind,
        appointment_id=appointment.id,
        patient_id=patient.id,
        phone=patient.phone,
        metadata=metadata,
        correlation_id="test-correlation",
    )


@pytest.mark.asyncio
async def test_dispatch_sends_and_records(
    services: Services, appointment_store, ledger, patient, channel: FakeChannel
):
    appointment = await appointment_store.create(patient.id, NINE)

    outcome = await services.dispatcher.dispatch(make_job(appointment, patient))

    assert outcome == DispatchOutcome.SENT
    assert len(channel.sent) == 1
    destination, body = channel.sent[0]
    assert destination == patient.phone
    assert "Maria Silva" in body
    assert "Sábado, 15/02/2025 às 09:00" in body

    records = await ledger.find_by_appointment_id(appointment.id)
    assert [r.kind for r in records] == [NotificationKind.REMINDER_72H]


@pytest.mark.asyncio
async def test_duplicate_dispatch_sends_once(
    services: Services, appointment_store, ledger, patient, channel: FakeChannel
):
    appointment = await appointment_store.create(patient.id, NINE)
    job = make_job(appointment, patient)

    first = await services.dispatcher.dispatch(job)
    second = await services.dispatcher.dispatch(job)

    assert first == DispatchOutcome.SENT
    assert second == DispatchOutcome.ALREADY_SENT
    assert len(channel.sent) == 1
    assert len(await ledger.find_by_appointment_id(appointment.id)) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_leaves_single_record(
    session_factory, clock, appointment_store, ledger, patient
):
    """Two workers both pass the lookup; the ledger constraint keeps one record."""
    channel = FakeChannel()
    dispatcher = build_dispatcher(session_factory, clock, channel, ledger=RacingLedger(ledger))
    appointment = await appointment_store.create(patient.id, NINE)
    job = make_job(appointment, patient)

    assert await dispatcher.dispatch(job) == DispatchOutcome.SENT
    assert await dispatcher.dispatch(job) == DispatchOutcome.SENT

    assert len(await ledger.find_by_appointment_id(appointment.id)) == 1


@pytest.mark.asyncio
async def test_ledger_rejects_duplicate_pair(appointment_store, ledger, patient):
    appointment = await appointment_store.create(patient.id, NINE)
    await ledger.create(appointment.id, NotificationKind.CONFIRMATION)

    with pytest.raises(DuplicateNotificationError):
        await ledger.create(appointment.id, NotificationKind.CONFIRMATION)

    # Other kinds for the same appointment are independent
    await ledger.create(appointment.id, NotificationKind.REMINDER_48H)
    assert len(await ledger.find_by_appointment_id(appointment.id)) == 2


@pytest.mark.asyncio
async def test_dispatch_drops_missing_appointment(services: Services, patient, channel):
    job = NotificationJob(
        kind=NotificationKind.REMINDER_48H,
        appointment_id=uuid4(),
        patient_id=patient.id,
        phone=patient.phone,
        correlation_id="test-correlation",
    )

    assert await services.dispatcher.dispatch(job) == DispatchOutcome.DROPPED
    assert channel.sent == []


@pytest.mark.asyncio
async def test_dispatch_drops_reminder_for_cancelled_appointment(
    services: Services, appointment_store, ledger, patient, channel
):
    appointment = await appointment_store.create(patient.id, NINE)
    await appointment_store.update(appointment.id, status=AppointmentStatus.CANCELLED)

    outcome = await services.dispatcher.dispatch(make_job(appointment, patient))

    assert outcome == DispatchOutcome.DROPPED
    assert channel.sent == []
    assert await ledger.find_by_appointment_id(appointment.id) == []


@pytest.mark.asyncio
async def test_dispatch_sends_cancellation_notice(
    services: Services, appointment_store, patient, channel
):
    appointment = await appointment_store.create(patient.id, NINE)
    await appointment_store.update(appointment.id, status=AppointmentStatus.CANCELLED)
    job = make_job(appointment, patient, NotificationKind.CANCELLATION, reason="Viagem")

    assert await services.dispatcher.dispatch(job) == DispatchOutcome.SENT
    body = channel.sent[0][1]
    assert "Consulta Cancelada" in body
    assert "Viagem" in body


@pytest.mark.asyncio
async def test_dispatch_drops_patient_without_consent(
    services: Services, appointment_store, patient_without_consent, channel
):
    appointment = await appointment_store.create(patient_without_consent.id, NINE)

    outcome = await services.dispatcher.dispatch(make_job(appointment, patient_without_consent))

    assert outcome == DispatchOutcome.DROPPED
    assert channel.sent == []


@pytest.mark.asyncio
async def test_dispatch_drops_missing_patient(services: Services, appointment_store, patient):
    appointment = await appointment_store.create(patient.id, NINE)
    job = make_job(appointment, patient).model_copy(update={"patient_id": uuid4()})

    assert await services.dispatcher.dispatch(job) == DispatchOutcome.DROPPED


@pytest.mark.asyncio
async def test_channel_failure_is_retryable(
    session_factory, clock, appointment_store, ledger, patient
):
    channel = FakeChannel(fail=True)
    dispatcher = build_dispatcher(session_factory, clock, channel)
    appointment = await appointment_store.create(patient.id, NINE)
    job = make_job(appointment, patient, NotificationKind.CONFIRMATION)

    with pytest.raises(MessageChannelException) as exc_info:
        await dispatcher.dispatch(job)
    assert exc_info.value.context["provider_status"] == 503
    assert await ledger.find_by_appointment_id(appointment.id) == []

    channel.fail = False
    assert await dispatcher.dispatch(job) == DispatchOutcome.SENT
    assert "Consulta Confirmada" in channel.sent[0][1]
    assert len(await ledger.find_by_appointment_id(appointment.id)) == 1


@pytest.mark.asyncio
async def test_permanent_channel_failure_is_dropped(
    session_factory, clock, appointment_store, ledger, patient
):
    channel = FakeChannel(permanent=True)
    dispatcher = build_dispatcher(session_factory, clock, channel)
    appointment = await appointment_store.create(patient.id, NINE)

    job = make_job(appointment, patient, NotificationKind.CONFIRMATION)

    assert await dispatcher.dispatch(job) == DispatchOutcome.DROPPED
    assert channel.sent == []
    assert await ledger.find_by_appointment_id(appointment.id) == []


@pytest.mark.asyncio
async def test_send_doctor_alert(session_factory, clock, escalation_store, patient):
    channel = FakeChannel()
    dispatcher = build_dispatcher(session_factory, clock, channel, doctor_phone=DOCTOR_PHONE)
    escalation = await escalation_store.create(patient.id, "Estou com muita dor", "low_confidence")

    outcome = await dispatcher.send_doctor_alert(escalation.id)

    assert outcome == DispatchOutcome.SENT
    destination, body = channel.sent[0]
    assert destination == DOCTOR_PHONE
    assert "ALERTA URGENTE" in body
    assert "Maria Silva" in body
    assert "low_confidence" in body
    assert "Segunda-feira, 10/02/2025 às 09:00" in body


@pytest.mark.asyncio
async def test_send_doctor_alert_unknown_patient(session_factory, clock, escalation_store):
    channel = FakeChannel()
    dispatcher = build_dispatcher(session_factory, clock, channel, doctor_phone=DOCTOR_PHONE)
    escalation = await escalation_store.create(uuid4(), "Socorro", "escalation_requested")

    assert await dispatcher.send_doctor_alert(escalation.id) == DispatchOutcome.SENT
    assert UNKNOWN_PATIENT_NAME in channel.sent[0][1]


@pytest.mark.asyncio
async def test_send_doctor_alert_without_doctor_phone(
    session_factory, clock, escalation_store, patient
):
    channel = FakeChannel()
    dispatcher = build_dispatcher(session_factory, clock, channel, doctor_phone=None)
    escalation = await escalation_store.create(patient.id, "Socorro", "escalation_requested")

    assert await dispatcher.send_doctor_alert(escalation.id) == DispatchOutcome.DROPPED
    assert channel.sent == []


@pytest.mark.asyncio
async def test_send_doctor_alert_missing_escalation(session_factory, clock):
    channel = FakeChannel()
    dispatcher = build_dispatcher(session_factory, clock, channel, doctor_phone=DOCTOR_PHONE)

    assert await dispatcher.send_doctor_alert(UUID(int=1)) == DispatchOutcome.DROPPED
    assert channel.sent == []


@pytest.mark.asyncio
async def test_send_doctor_alert_channel_failure(
    session_factory, clock, escalation_store, patient
):
    dispatcher = build_dispatcher(
        session_factory, clock, FakeChannel(fail=True), doctor_phone=DOCTOR_PHONE
    )
    escalation = await escalation_store.create(patient.id, "Socorro", "escalation_requested")

    with pytest.raises(MessageChannelException):
        await dispatcher.send_doctor_alert(escalation.id)



@pytest.mark.asyncio
async def test_send_doctor_alert_permanent_failure(
    session_factory, clock, escalation_store, patient
):
    dispatcher = build_dispatcher(
        session_factory, clock, FakeChannel(permanent=True), doctor_phone=DOCTOR_PHONE
    )
    escalation = await escalation_store.create(patient.id, "Socorro", "escalation_requested")

    assert await dispatcher.send_doctor_alert(escalation.id) == DispatchOutcome.DROPPED
