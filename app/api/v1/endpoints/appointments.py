"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import AppointmentServiceDep, CurrentOperator
from app.schemas.appointments import (
    Appointment,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentStatusUpdate,
    AvailabilityResponse,
)

router = APIRouter()


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Free slots for a day",
)
async def get_availability(
    operator: CurrentOperator,
    service: AppointmentServiceDep,
    day: date = Query(..., alias="date"),
) -> AvailabilityResponse:
    """
    List the free Saturday slots for a calendar day.

    Non-Saturdays and holidays return an empty list.
    """
    slots = await service.check_availability(day)
    return AvailabilityResponse(date=day, slots=slots)


@router.post(
    "",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    operator: CurrentOperator,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Book a Saturday slot for a patient.

    Args:
        data: Patient and requested slot start
        operator: Authenticated operator
        service: Appointment service

    Returns:
        Created appointment
    """
    return await service.book(data.patient_id, data.scheduled_at)


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List a patient's appointments",
)
async def list_appointments(
    operator: CurrentOperator,
    service: AppointmentServiceDep,
    patient_id: UUID = Query(...),
) -> AppointmentListResponse:
    """List appointments for a patient, newest first."""
    items = await service.list_for_patient(patient_id)
    return AppointmentListResponse(total=len(items), items=items)


@router.get(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Get appointment",
)
async def get_appointment(
    appointment_id: UUID,
    operator: CurrentOperator,
    service: AppointmentServiceDep,
) -> Appointment:
    """Get appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.put(
    "/{appointment_id}/reschedule",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    operator: CurrentOperator,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Move an appointment to another Saturday slot.

    Args:
        appointment_id: Appointment ID
        data: New slot start
        operator: Authenticated operator
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.reschedule(appointment_id, data.scheduled_at)


@router.post(
    "/{appointment_id}/cancel",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    operator: CurrentOperator,
    service: AppointmentServiceDep,
) -> Appointment:
    """Cancel an appointment at least 12 hours ahead of time."""
    return await service.cancel(appointment_id, data.reason)


@router.patch(
    "/{appointment_id}/status",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    operator: CurrentOperator,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Update appointment status.

    Args:
        appointment_id: Appointment ID
        data: Target status and optional cancellation reason
        operator: Authenticated operator
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.update_status(appointment_id, data.status, data.reason)
