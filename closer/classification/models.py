"""Outcome classification models and pipeline tables."""

from pydantic import BaseModel, Field

from closer.conversation.models import Classification, Priority

# Ordinal position of known stage labels (compared lowercase). Unknown
# labels sit at position 0, so any mapped classification can move them.
STAGE_POSITION: dict[str, int] = {
    "cold": 0,
    "nuevo": 0,
    "new": 0,
    "initial": 0,
    "lead": 0,
    "contactado": 0,
    "warm": 1,
    "contacted": 1,
    "hot": 2,
    "calificado": 2,
    "qualified": 2,
    "propuesta": 2,
    "negociacion": 2,
    "ganado": 3,
    "won": 3,
    "closed": 3,
    "perdido": 4,
    "lost": 4,
}

# bot_autoresponse has no stage; it only updates classification metadata
CLASSIFICATION_STAGE: dict[Classification, str] = {
    Classification.HOT: "Hot",
    Classification.WARM: "Warm",
    Classification.COLD: "Cold",
}

CLASSIFICATION_PRIORITY: dict[Classification, Priority] = {
    Classification.HOT: Priority.HIGH,
    Classification.WARM: Priority.MEDIUM,
    Classification.COLD: Priority.LOW,
}

FALLBACK_CLASSIFICATION = Classification.WARM


class ClassificationOutput(BaseModel):
    """Structured output requested from the model."""

    classification: Classification = Field(..., description="hot, warm, cold or bot_autoresponse")
    reason: str = Field(default="", description="One short sentence")


class LeadUpdate(BaseModel):
    """What apply_classification_to_lead wrote."""

    classification: Classification
    stage: str | None = None
    priority: Priority | None = None

    @property
    def stage_changed(self) -> bool:
        return self.stage is not None


__all__ = [
    "CLASSIFICATION_PRIORITY",
    "CLASSIFICATION_STAGE",
    "Classification",
    "ClassificationOutput",
    "FALLBACK_CLASSIFICATION",
    "LeadUpdate",
    "Priority",
    "STAGE_POSITION",
]
