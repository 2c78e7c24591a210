"""Escalation management: patient interactions that need a human."""

from uuid import UUID

import structlog

from app.core.exceptions import ConflictException, NotFoundException
from app.repositories.interfaces import EscalationStore
from app.schemas.escalations import Escalation, EscalationFilters, EscalationListResponse

logger = structlog.get_logger(__name__)


class EscalationService:
    """Service for creating, listing and resolving escalations."""

    def __init__(self, escalations: EscalationStore):
        """Initialize service with the escalation store."""
        self.escalations = escalations

    async def create(self, patient_id: UUID, message: str, reason: str) -> Escalation:
        """Record a new, unresolved escalation."""
        escalation = await self.escalations.create(patient_id, message, reason)
        logger.info(
            "escalation_created",
            escalation_id=str(escalation.id),
            patient_id=str(patient_id),
            reason=reason,
        )
        return escalation

    async def list(self, filters: EscalationFilters) -> EscalationListResponse:
        """
        List escalations with patient context.

        Args:
            filters: Resolution filter and pagination

        Returns:
            Page of escalations, newest first, with the total matching count
        """
        items = await self.escalations.list(filters)
        total = await self.escalations.count(filters)

        return EscalationListResponse(
            total=total,
            limit=filters.limit,
            offset=filters.offset,
            items=items,
        )

    async def resolve(
        self,
        escalation_id: UUID,
        resolved_by: str,
        notes: str | None = None,
    ) -> Escalation:
        """
        Resolve an escalation. Resolution happens once.

        Args:
            escalation_id: Escalation to resolve
            resolved_by: Operator identifier
            notes: Optional resolution notes

        Returns:
            Resolved escalation

        Raises:
            NotFoundException: If escalation not found
            ConflictException: If escalation is already resolved
        """
        existing = await self.escalations.find_by_id(escalation_id)
        if not existing:
            raise NotFoundException(
                "Escalation not found", context={"escalation_id": str(escalation_id)}
            )
        if existing.is_resolved:
            raise ConflictException(
                "Escalation is already resolved",
                context={"escalation_id": str(escalation_id)},
            )

        resolved = await self.escalations.resolve(escalation_id, resolved_by, notes or None)
        if not resolved:
            # Lost a race with another operator
            raise ConflictException(
                "Escalation is already resolved",
                context={"escalation_id": str(escalation_id)},
            )

        logger.info(
            "escalation_resolved", escalation_id=str(escalation_id), resolved_by=resolved_by
        )
        return resolved
