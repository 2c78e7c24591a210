"""Classified patient intents handed over by the message classifier."""

from enum import Enum

from pydantic import BaseModel, Field


class IntentType(str, Enum):
    """What the patient is trying to do."""

    BOOK = "book"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    CONFIRM = "confirm"
    QUERY = "query"
    ESCALATE = "escalate"


class ExtractedEntities(BaseModel):
    """Entities pulled out of the patient message."""

    date: str | None = None
    time: str | None = None
    reason: str | None = None


class ClassifiedIntent(BaseModel):
    """Classifier output."""

    intent: IntentType
    confidence: float = Field(..., ge=0.0, le=1.0)
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
