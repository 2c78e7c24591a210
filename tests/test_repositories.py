"""Tests for the SQL stores and the arq queue adapter."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from app.core.exceptions import NotFoundException
from app.core.queue import SEND_NOTIFICATION, ArqJobQueue
from app.repositories import AppointmentRepository, AuditLogRepository, PatientRepository
from app.schemas.appointments import AppointmentStatus
from app.services.availability import AvailabilityCalculator
from tests.fakes import FrozenClock

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
NINE = datetime(2025, 2, 15, 9, 0, tzinfo=SAO_PAULO)
ELEVEN = datetime(2025, 2, 15, 11, 0, tzinfo=SAO_PAULO)


@pytest.fixture
def store(session_factory, clock) -> AppointmentRepository:
    return AppointmentRepository(session_factory, clock)


@pytest.mark.asyncio
async def test_patient_lookup(patient_repository: PatientRepository, patient):
    assert await patient_repository.find_by_id(patient.id) == patient
    assert await patient_repository.find_by_phone("+5511999990001") == patient
    assert await patient_repository.find_by_phone("+5511000000000") is None
    assert patient.has_consent


@pytest.mark.asyncio
async def test_patient_without_consent(patient_without_consent):
    assert patient_without_consent.consent_given_at is None
    assert not patient_without_consent.has_consent


@pytest.mark.asyncio
async def test_find_by_slot(store: AppointmentRepository, clock, patient):
    calculator = AvailabilityCalculator(clock, SAO_PAULO)
    appointment = await store.create(patient.id, NINE)

    assert (await store.find_by_slot(calculator.slot_for(NINE))).id == appointment.id
    assert await store.find_by_slot(calculator.slot_for(ELEVEN)) is None
    assert await store.find_by_slot(calculator.slot_for(NINE), exclude_id=appointment.id) is None

    await store.update(appointment.id, status=AppointmentStatus.CANCELLED)
    assert await store.find_by_slot(calculator.slot_for(NINE)) is None


@pytest.mark.asyncio
async def test_find_by_date_range_is_inclusive(
    store: AppointmentRepository, patient, other_patient
):
    nine = await store.create(patient.id, NINE)
    eleven = await store.create(other_patient.id, ELEVEN)

    found = await store.find_by_date_range(NINE, ELEVEN)
    assert [a.id for a in found] == [nine.id, eleven.id]

    found = await store.find_by_date_range(NINE + timedelta(minutes=1), ELEVEN)
    assert [a.id for a in found] == [eleven.id]

    await store.update(nine.id, status=AppointmentStatus.CANCELLED)
    assert len(await store.find_by_date_range(NINE, ELEVEN)) == 2
    assert len(await store.find_by_date_range(NINE, ELEVEN, exclude_cancelled=True)) == 1


@pytest.mark.asyncio
async def test_update_stamps_updated_at(store: AppointmentRepository, clock: FrozenClock, patient):
    appointment = await store.create(patient.id, NINE)
    clock.advance(minutes=30)

    updated = await store.update(appointment.id, status=AppointmentStatus.CONFIRMED)

    assert updated.status == AppointmentStatus.CONFIRMED
    assert updated.created_at == appointment.created_at
    assert updated.updated_at == clock.now()


@pytest.mark.asyncio
async def test_update_unknown_appointment(store: AppointmentRepository):
    with pytest.raises(NotFoundException):
        await store.update(uuid4(), status=AppointmentStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_audit_log_record(session_factory, clock, patient):
    await AuditLogRepository(session_factory, clock).record(
        patient.id, "appointment_booked", {"appointment_id": "abc"}
    )


class RecordingPool:
    def __init__(self, duplicate: bool = False):
        self.duplicate = duplicate
        self.calls = []
        self.closed = False

    async def enqueue_job(self, function, *args, _job_id=None):
        self.calls.append((function, args, _job_id))
        return None if self.duplicate else SimpleNamespace(job_id=_job_id or "generated")

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_arq_queue_enqueue():
    pool = RecordingPool()
    queue = ArqJobQueue(pool=pool)

    await queue.enqueue(SEND_NOTIFICATION, {"kind": "confirmation"}, job_id="confirmation:1")
    await queue.close()

    assert pool.calls == [(SEND_NOTIFICATION, ({"kind": "confirmation"},), "confirmation:1")]
    assert pool.closed


@pytest.mark.asyncio
async def test_arq_queue_duplicate_job_id_is_not_an_error():
    pool = RecordingPool(duplicate=True)

    await ArqJobQueue(pool=pool).enqueue(SEND_NOTIFICATION, {}, job_id="confirmation:1")

    assert len(pool.calls) == 1
