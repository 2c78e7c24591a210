"""Escalation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentOperator, EscalationServiceDep
from app.schemas.escalations import (
    Escalation,
    EscalationFilters,
    EscalationListResponse,
    EscalationResolve,
)

router = APIRouter()


@router.get(
    "",
    response_model=EscalationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List escalations",
)
async def list_escalations(
    operator: CurrentOperator,
    service: EscalationServiceDep,
    resolved: bool | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> EscalationListResponse:
    """
    List escalations with patient context, newest first.

    Args:
        operator: Authenticated operator
        service: Escalation service
        resolved: Only resolved (true) or unresolved (false) escalations
        limit: Page size
        offset: Items to skip

    Returns:
        Paginated escalations
    """
    filters = EscalationFilters(resolved=resolved, limit=limit, offset=offset)
    return await service.list(filters)


@router.post(
    "/{escalation_id}/resolve",
    response_model=Escalation,
    status_code=status.HTTP_200_OK,
    summary="Resolve escalation",
)
async def resolve_escalation(
    escalation_id: UUID,
    data: EscalationResolve,
    operator: CurrentOperator,
    service: EscalationServiceDep,
) -> Escalation:
    """Mark an escalation as handled by the current operator."""
    return await service.resolve(escalation_id, resolved_by=operator, notes=data.notes)
