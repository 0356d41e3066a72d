"""Outcome Classifier.

Labels a conversation hot, warm, cold or bot_autoresponse and moves the
lead forward in the sales pipeline. Stages only ever move forward.
"""

from uuid import UUID

from closer.classification.models import (
    CLASSIFICATION_PRIORITY,
    CLASSIFICATION_STAGE,
    FALLBACK_CLASSIFICATION,
    STAGE_POSITION,
    Classification,
    ClassificationOutput,
    LeadUpdate,
)
from closer.conversation.models import Role, Turn, utc_now
from closer.conversation.store import LeadStore
from closer.observability.logging import get_logger
from closer.observability.metrics import CLASSIFICATIONS
from closer.providers.llm import LLMExecutor

logger = get_logger(__name__)

CLASSIFY_PROMPT = """Clasifica esta conversación de WhatsApp posterior a un envío masivo.

Categorías:
- hot: el contacto muestra intención de compra (pregunta precios, pide demo o cotización, quiere contratar, dice que le interesa)
- warm: el contacto respondió con interés general (saluda, pide información, responde positivamente sin intención clara de compra)
- cold: el contacto rechaza o pide que no le escriban (no le interesa, spam, bloquear, no molestar)
- bot_autoresponse: respuesta automática de un sistema (fuera de horario, buzón, número equivocado, auto-reply)

Mensajes de la conversación:
{messages}"""


def format_turns(turns: list[Turn]) -> str:
    return "\n".join(
        f"[{'Contacto' if turn.role == Role.USER else 'Bot'}]: {turn.content}" for turn in turns
    )


def stage_position(stage: str) -> int:
    return STAGE_POSITION.get(stage.strip().lower(), 0)


def should_update_pipeline(current_stage: str, proposed_stage: str) -> bool:
    """True only when proposed_stage is strictly ahead of current_stage."""
    return stage_position(proposed_stage) > stage_position(current_stage)


class OutcomeClassifier:
    """Classifies conversations with a small structured model call."""

    def __init__(self, executor: LLMExecutor) -> None:
        self._executor = executor

    async def classify(self, turns: list[Turn]) -> Classification:
        """Classify a conversation. Never raises; any failure yields warm."""
        try:
            output, _ = await self._executor.generate_structured(
                CLASSIFY_PROMPT.format(messages=format_turns(turns)),
                ClassificationOutput,
            )
        except Exception as e:
            logger.warning(
                "classification_failed_defaulting",
                fallback=FALLBACK_CLASSIFICATION.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            CLASSIFICATIONS.labels(classification=FALLBACK_CLASSIFICATION.value).inc()
            return FALLBACK_CLASSIFICATION

        CLASSIFICATIONS.labels(classification=output.classification.value).inc()
        logger.debug(
            "conversation_classified",
            classification=output.classification.value,
            reason=output.reason,
        )
        return output.classification


async def apply_classification_to_lead(
    lead_store: LeadStore,
    lead_id: UUID,
    classification: Classification,
    current_stage: str,
) -> LeadUpdate:
    """Write a classification to a lead.

    The classification and last_activity_at are always written. Stage and
    priority are written only when the mapped stage is an upgrade.

    Raises:
        StoreError: If the lead could not be updated
    """
    update = LeadUpdate(classification=classification)

    proposed = CLASSIFICATION_STAGE.get(classification)
    if proposed is not None and should_update_pipeline(current_stage, proposed):
        update.stage = proposed
        update.priority = CLASSIFICATION_PRIORITY[classification]

    await lead_store.update_classification(
        lead_id,
        classification=classification,
        last_activity_at=utc_now(),
        stage=update.stage,
        priority=update.priority,
    )

    logger.info(
        "lead_classification_applied",
        lead_id=str(lead_id),
        classification=classification.value,
        previous_stage=current_stage,
        stage=update.stage,
    )
    return update
