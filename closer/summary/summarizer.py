"""Conversation State Summarizer.

Keeps a compact structured summary of each conversation so the agent does
not need the whole history in every prompt. The summary is regenerated by a
small model only every few user turns to bound cost, and each refresh
conserves what the previous state already knew.
"""

from uuid import UUID

from closer.config.models.control import SummaryConfig
from closer.conversation.models import (
    ConversationState,
    Role,
    Turn,
    count_user_turns,
    utc_now,
)
from closer.conversation.store import ConversationStore
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import SUMMARY_REFRESHES
from closer.providers.llm import LLMExecutor, ProviderError
from closer.summary.models import LeadContext, StateExtraction

logger = get_logger(__name__)

UNKNOWN = "desconocido"


def format_history(turns: list[Turn]) -> str:
    return "\n".join(
        f"[{i}] {'CLIENTE' if turn.role == Role.USER else 'AGENTE'}: {turn.content}"
        for i, turn in enumerate(turns, start=1)
    )


def build_state_prompt(
    turns: list[Turn],
    previous: ConversationState | None,
    lead_context: LeadContext | None,
) -> str:
    lead = lead_context or LeadContext()
    previous_block = ""
    if previous is not None:
        previous_block = (
            "\n# ESTADO ANTERIOR (actualízalo; conserva lo que siga vigente)\n"
            f"{previous.model_dump_json(indent=2, exclude={'schema_version', 'last_updated'})}\n"
        )

    return f"""Analiza esta conversación de ventas por WhatsApp y resume su estado actual.

# CONTEXTO DEL LEAD
- Nombre: {lead.name or UNKNOWN}
- Empresa: {lead.company or UNKNOWN}
- Industria: {lead.industry or UNKNOWN}
{previous_block}
# CONVERSACIÓN COMPLETA ({len(turns)} mensajes)
{format_history(turns)}

# INSTRUCCIONES
1. Resume qué quiere el lead, qué se le ofreció y en qué quedaron.
2. Lista todos los temas cubiertos sin omitir ninguno.
3. Separa objeciones pendientes de objeciones resueltas.
4. El resumen debe tener como máximo 3 oraciones.
5. Si hay estado anterior, conserva la información que siga vigente en lugar de reemplazarla."""


def format_state_for_prompt(state: ConversationState) -> str:
    """Render a state as a compact block for the generator prompt."""
    parts = [
        f"Fase: {state.phase}",
        f"Interés: {state.interest_level.value}",
    ]
    if state.topics_covered:
        parts.append(f"Temas cubiertos: {', '.join(state.topics_covered)}")
    if state.objections_raised:
        pending = state.pending_objections
        if pending:
            parts.append(f"Objeciones pendientes: {', '.join(pending)}")
        if state.objections_resolved:
            parts.append(f"Objeciones resueltas: {', '.join(state.objections_resolved)}")
    parts.append(f"Resumen: {state.summary}")
    parts.append(f"Siguiente acción: {state.next_action}")

    return "# ESTADO DE LA CONVERSACIÓN\n" + "\n".join(parts)


class ConversationStateSummarizer:
    """Decides when to refresh a conversation state and refreshes it."""

    def __init__(
        self,
        executor: LLMExecutor,
        store: ConversationStore,
        config: SummaryConfig | None = None,
    ) -> None:
        self._executor = executor
        self._store = store
        self._config = config or SummaryConfig()

    def should_refresh_state(self, state: ConversationState | None, user_count: int) -> bool:
        """First summary after enough user turns; then every refresh_interval turns."""
        if not self._config.enabled:
            return False
        if state is None:
            return user_count >= self._config.first_summary_user_turns
        return user_count - state.message_count_at_update >= self._config.refresh_interval

    async def generate_state(
        self,
        turns: list[Turn],
        previous: ConversationState | None = None,
        lead_context: LeadContext | None = None,
    ) -> ConversationState:
        """Ask the model for a fresh state.

        Raises:
            ProviderError: If the model call or parsing failed
        """
        extraction, _ = await self._executor.generate_structured(
            build_state_prompt(turns, previous, lead_context),
            StateExtraction,
        )
        state = ConversationState(
            phase=extraction.phase,
            topics_covered=extraction.topics_covered,
            objections_raised=extraction.objections_raised,
            objections_resolved=extraction.objections_resolved,
            interest_level=extraction.interest_level,
            next_action=extraction.next_action,
            summary=extraction.summary,
            message_count_at_update=count_user_turns(turns),
            last_updated=utc_now(),
        )
        return state.conserve(previous)

    async def refresh(
        self,
        conversation_id: UUID,
        turns: list[Turn],
        lead_context: LeadContext | None = None,
    ) -> ConversationState | None:
        """Load, refresh if due, and save the state of a conversation.

        Model failures keep the previous state. Store failures are logged
        and the best known state is returned.
        """
        try:
            previous = await self._store.get_state(conversation_id)
        except StoreError as e:
            SUMMARY_REFRESHES.labels(outcome="store_error").inc()
            logger.error(
                "conversation_state_load_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return None

        user_count = count_user_turns(turns)
        if not self.should_refresh_state(previous, user_count):
            SUMMARY_REFRESHES.labels(outcome="not_due").inc()
            return previous

        try:
            state = await self.generate_state(turns, previous, lead_context)
        except ProviderError as e:
            SUMMARY_REFRESHES.labels(outcome="model_error").inc()
            logger.warning(
                "conversation_state_generation_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return previous

        try:
            await self._store.save_state(conversation_id, state)
        except StoreError as e:
            SUMMARY_REFRESHES.labels(outcome="store_error").inc()
            logger.error(
                "conversation_state_save_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return state

        SUMMARY_REFRESHES.labels(outcome="refreshed").inc()
        logger.info(
            "conversation_state_refreshed",
            conversation_id=str(conversation_id),
            user_turns=user_count,
            phase=state.phase,
        )
        return state
