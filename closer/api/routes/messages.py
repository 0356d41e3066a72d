"""Inbound message endpoint."""

from fastapi import APIRouter, BackgroundTasks

from closer.api.dependencies import TurnPipelineDep
from closer.api.exceptions import LLMProviderError, RateLimitExceededError
from closer.api.models.control import InboundMessageResponse
from closer.observability.logging import get_logger
from closer.observability.metrics import REQUEST_COUNT
from closer.pipeline import InboundMessage, TurnStatus
from closer.providers.llm import ProviderError

logger = get_logger(__name__)

router = APIRouter(prefix="/messages")


@router.post("/inbound", response_model=InboundMessageResponse)
async def receive_inbound(
    message: InboundMessage,
    pipeline: TurnPipelineDep,
    background_tasks: BackgroundTasks,
) -> InboundMessageResponse:
    """Run an inbound message through the turn control plane.

    Paused, suppressed, locked and auto-reply messages are stored without a
    reply and answered with 200 and their status. Rate-limited messages
    get 429.
    """
    # Drain persistence tasks after the response is sent
    background_tasks.add_task(pipeline.tasks.wait)

    try:
        outcome = await pipeline.process(message)
    except ProviderError as e:
        REQUEST_COUNT.labels(endpoint="inbound", status="llm_error").inc()
        logger.error(
            "reply_generation_failed",
            conversation_id=str(message.conversation_id),
            error=str(e),
        )
        raise LLMProviderError("Reply generation failed") from e

    REQUEST_COUNT.labels(endpoint="inbound", status=outcome.status.value).inc()

    if outcome.status == TurnStatus.RATE_LIMITED and outcome.rate_limit is not None:
        raise RateLimitExceededError("Too many messages", outcome.rate_limit)

    return InboundMessageResponse(
        status=outcome.status,
        conversation_id=outcome.conversation_id,
        response=outcome.response,
        was_guarded=outcome.was_guarded,
        guard_reason=outcome.guard_reason,
    )
