"""Tests for escalation management."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.core.exceptions import ConflictException, NotFoundException
from app.dependencies import Services
from app.repositories import EscalationRepository
from app.schemas.escalations import Escalation, EscalationFilters
from tests.fakes import FrozenClock


@pytest.mark.asyncio
async def test_create_escalation(services: Services, patient):
    escalation = await services.escalations.create(
        patient.id, "Preciso falar com a médica", "low_confidence"
    )

    assert escalation.patient_id == patient.id
    assert escalation.reason == "low_confidence"
    assert not escalation.is_resolved
    assert escalation.resolved_by is None


@pytest.mark.asyncio
async def test_list_escalations_newest_first_with_patient(
    services: Services, patient, other_patient, clock: FrozenClock
):
    first = await services.escalations.create(patient.id, "Primeira", "low_confidence")
    clock.advance(minutes=5)
    second = await services.escalations.create(other_patient.id, "Segunda", "escalation_requested")

    page = await services.escalations.list(EscalationFilters())

    assert page.total == 2
    assert [e.id for e in page.items] == [second.id, first.id]
    assert page.items[0].patient_name == "João Souza"
    assert page.items[0].patient_phone == other_patient.phone
    assert page.items[1].patient_name == "Maria Silva"


@pytest.mark.asyncio
async def test_list_escalations_filters_and_paginates(
    services: Services, patient, clock: FrozenClock
):
    created = []
    for i in range(3):
        message = f"Mensagem {i}"
        escalation = await services.escalations.create(patient.id, message, "low_confidence")
        created.append(escalation)
        clock.advance(minutes=1)
    await services.escalations.resolve(created[0].id, "recepcao")

    unresolved = await services.escalations.list(EscalationFilters(resolved=False))
    assert unresolved.total == 2
    assert {e.id for e in unresolved.items} == {created[1].id, created[2].id}

    resolved = await services.escalations.list(EscalationFilters(resolved=True))
    assert [e.id for e in resolved.items] == [created[0].id]

    page = await services.escalations.list(EscalationFilters(limit=1, offset=1))
    assert page.total == 3
    assert page.limit == 1
    assert page.offset == 1
    assert [e.id for e in page.items] == [created[1].id]


@pytest.mark.asyncio
async def test_resolve_escalation(services: Services, patient, clock: FrozenClock):
    escalation = await services.escalations.create(patient.id, "Dúvida", "low_confidence")
    clock.advance(hours=1)

    resolved = await services.escalations.resolve(escalation.id, "recepcao", "Paciente orientada")

    assert resolved.is_resolved
    assert resolved.resolved_by == "recepcao"
    assert resolved.resolution_notes == "Paciente orientada"
    assert resolved.resolved_at == clock.now()


@pytest.mark.asyncio
async def test_resolve_twice_conflicts(services: Services, patient):
    escalation = await services.escalations.create(patient.id, "Dúvida", "low_confidence")
    await services.escalations.resolve(escalation.id, "recepcao")

    with pytest.raises(ConflictException):
        await services.escalations.resolve(escalation.id, "outra-pessoa")


@pytest.mark.asyncio
async def test_resolve_missing_escalation(services: Services):
    with pytest.raises(NotFoundException):
        await services.escalations.resolve(uuid4(), "recepcao")


@pytest.mark.asyncio
async def test_store_resolve_is_conditional(session_factory, clock, patient):
    """Only the first resolve updates the row."""
    store = EscalationRepository(session_factory, clock)
    escalation = await store.create(patient.id, "Dúvida", "low_confidence")

    assert await store.resolve(escalation.id, "recepcao", None) is not None
    assert await store.resolve(escalation.id, "outra-pessoa", None) is None
    assert (await store.find_by_id(escalation.id)).resolved_by == "recepcao"


def test_resolution_fields_set_together():
    with pytest.raises(ValidationError):
        Escalation(
            id=uuid4(),
            patient_id=uuid4(),
            message="Oi",
            reason="low_confidence",
            created_at=datetime(2025, 2, 10, tzinfo=UTC),
            resolved_at=datetime(2025, 2, 10, 1, tzinfo=UTC),
        )
