"""Turn control plane.

Runs every inbound message through the control checks before any reply is
generated:

    dedupe -> rate limit -> conversation lock -> auto-responder (first
    interaction) -> pause -> suppress -> progress -> state summary ->
    generator -> response guard

Message persistence happens in background tasks owned by the pipeline.
"""

import time
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from closer.config.models.control import GuardConfig, ProgressConfig
from closer.control import BotControl, ConversationLock, MessageDeduplicator
from closer.conversation.models import Conversation, Message, Role, SentBy, Turn, utc_now
from closer.conversation.store import ConversationStore
from closer.db.errors import StoreError
from closer.guard import guard_response
from closer.observability.logging import get_logger
from closer.observability.metrics import (
    AUTORESPONDERS_DETECTED,
    GUARD_INTERVENTIONS,
    TURN_LATENCY,
)
from closer.pipeline.generator import GenerationRequest, ReplyGenerator
from closer.pipeline.tasks import BackgroundTaskGroup
from closer.progress import (
    AskCategoryRegistry,
    AutoResponderDetector,
    ProgressContext,
    analyze_progress,
)
from closer.ratelimit import MessageRateLimiter, RateLimitResult
from closer.summary import ConversationStateSummarizer, LeadContext, format_state_for_prompt

logger = get_logger(__name__)


class TurnStatus(str, Enum):
    """Outcome of one inbound message."""

    REPLIED = "replied"
    BOT_PAUSED = "bot_paused"
    BOT_SUPPRESSED = "bot_suppressed"
    AUTORESPONDER_DETECTED = "autoresponder_detected"
    LOCKED = "locked"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"


class InboundMessage(BaseModel):
    """An inbound message event from the messaging channel."""

    tenant_id: UUID
    conversation_id: UUID
    actor_phone: str = Field(..., min_length=1)
    text: str
    message_id: str | None = Field(default=None, description="Provider message id")
    timestamp: datetime = Field(default_factory=utc_now)
    lead_context: LeadContext | None = None


class TurnOutcome(BaseModel):
    """What the pipeline decided for one inbound message."""

    status: TurnStatus
    conversation_id: UUID
    response: str | None = None
    was_guarded: bool = False
    guard_reason: str | None = None
    should_pivot: bool = False
    rate_limit: RateLimitResult | None = None


class TurnControlPlane:
    """Orchestrates the control checks for each inbound message."""

    def __init__(
        self,
        *,
        control: BotControl,
        rate_limiter: MessageRateLimiter,
        lock: ConversationLock,
        conversations: ConversationStore,
        generator: ReplyGenerator,
        summarizer: ConversationStateSummarizer | None = None,
        deduplicator: MessageDeduplicator | None = None,
        autoresponder: AutoResponderDetector | None = None,
        registry: AskCategoryRegistry | None = None,
        progress_config: ProgressConfig | None = None,
        guard_config: GuardConfig | None = None,
        tasks: BackgroundTaskGroup | None = None,
    ) -> None:
        self._control = control
        self._rate_limiter = rate_limiter
        self._lock = lock
        self._conversations = conversations
        self._generator = generator
        self._summarizer = summarizer
        self._deduplicator = deduplicator
        self._autoresponder = autoresponder or AutoResponderDetector()
        self._registry = registry
        self._progress_config = progress_config or ProgressConfig()
        self._guard_config = guard_config or GuardConfig()
        self.tasks = tasks or BackgroundTaskGroup()

    async def process(self, message: InboundMessage) -> TurnOutcome:
        """Run one inbound message through the control plane.

        Raises:
            ProviderError: If the reply generator failed
        """
        start = time.perf_counter()
        outcome = await self._process(message)
        TURN_LATENCY.labels(outcome=outcome.status.value).observe(time.perf_counter() - start)
        logger.info(
            "turn_processed",
            tenant_id=str(message.tenant_id),
            conversation_id=str(message.conversation_id),
            status=outcome.status.value,
            was_guarded=outcome.was_guarded,
        )
        return outcome

    async def _process(self, message: InboundMessage) -> TurnOutcome:
        cid = message.conversation_id

        if message.message_id and self._deduplicator is not None:
            if await self._deduplicator.seen(message.message_id):
                return TurnOutcome(status=TurnStatus.DUPLICATE, conversation_id=cid)

        rate = await self._rate_limiter.check(message.actor_phone)
        if not rate.allowed:
            return TurnOutcome(status=TurnStatus.RATE_LIMITED, conversation_id=cid, rate_limit=rate)

        async with self._lock.hold(message.tenant_id, message.actor_phone) as acquired:
            history = await self._load_history(message)
            self._persist(cid, Role.USER, message.text, SentBy.LEAD, "persist_inbound")

            if not acquired:
                return TurnOutcome(status=TurnStatus.LOCKED, conversation_id=cid)

            if len(history) <= 1 and self._autoresponder.matches(message.text):
                AUTORESPONDERS_DETECTED.inc()
                logger.info("autoresponder_detected", conversation_id=str(cid))
                return TurnOutcome(status=TurnStatus.AUTORESPONDER_DETECTED, conversation_id=cid)

            if await self._control.is_paused(cid):
                return TurnOutcome(status=TurnStatus.BOT_PAUSED, conversation_id=cid)

            if await self._control.is_suppressed(cid):
                return TurnOutcome(status=TurnStatus.BOT_SUPPRESSED, conversation_id=cid)

            return await self._reply(message, history)

    async def _reply(self, message: InboundMessage, history: list[Turn]) -> TurnOutcome:
        cid = message.conversation_id
        turns = [*history, Turn(role=Role.USER, content=message.text)]

        progress = analyze_progress(
            ProgressContext(
                history=turns,
                current_message=message.text,
                turn_count=sum(1 for t in turns if t.role == Role.USER),
            ),
            registry=self._registry,
            config=self._progress_config,
        )

        state_block = ""
        if self._summarizer is not None:
            state = await self._summarizer.refresh(cid, turns, message.lead_context)
            if state is not None:
                state_block = format_state_for_prompt(state)

        raw = await self._generator(
            GenerationRequest(
                history=history,
                message=message.text,
                state_block=state_block,
                pivot_instruction=progress.pivot_instruction,
                progress_instruction=progress.progress_instruction,
            )
        )

        guarded = guard_response(raw, self._guard_config.max_sentences)
        if guarded.was_guarded:
            GUARD_INTERVENTIONS.inc()
            logger.info("response_guarded", conversation_id=str(cid), reason=guarded.reason)

        self._persist(cid, Role.ASSISTANT, guarded.response, SentBy.BOT, "persist_reply")

        return TurnOutcome(
            status=TurnStatus.REPLIED,
            conversation_id=cid,
            response=guarded.response,
            was_guarded=guarded.was_guarded,
            guard_reason=guarded.reason,
            should_pivot=progress.should_pivot,
        )

    async def operator_reply(
        self,
        conversation_id: UUID,
        text: str,
        operator: str = "operator",
    ) -> Message:
        """Record a human reply and pause the bot in the background.

        Raises:
            StoreError: If the message could not be saved
        """
        message = Message(
            conversation_id=conversation_id,
            role=Role.ASSISTANT,
            content=text,
            sent_by=SentBy.OPERATOR,
        )
        await self._conversations.add_message(message)
        self.tasks.spawn(
            "pause_on_operator_reply",
            self._control.pause(conversation_id, actor=operator),
        )
        logger.info("operator_reply_recorded", conversation_id=str(conversation_id))
        return message

    async def _load_history(self, message: InboundMessage) -> list[Turn]:
        """Load prior turns, creating the conversation on first contact."""
        conversation_id = message.conversation_id
        try:
            if await self._conversations.get(conversation_id) is None:
                await self._conversations.save(
                    Conversation(
                        id=conversation_id,
                        tenant_id=message.tenant_id,
                        actor_phone=message.actor_phone,
                    )
                )
                logger.info("conversation_created", conversation_id=str(conversation_id))
            messages = await self._conversations.list_messages(conversation_id)
        except StoreError as e:
            logger.error(
                "conversation_history_load_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return []
        return [m.to_turn() for m in messages]

    def _persist(
        self,
        conversation_id: UUID,
        role: Role,
        content: str,
        sent_by: SentBy,
        task_name: str,
    ) -> None:
        self.tasks.spawn(
            task_name,
            self._conversations.add_message(
                Message(
                    conversation_id=conversation_id,
                    role=role,
                    content=content,
                    sent_by=sent_by,
                )
            ),
        )
