"""Operator control endpoints for a single conversation."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks

from closer.api.dependencies import BotControlDep, ConversationStoreDep, TurnPipelineDep
from closer.api.exceptions import ConversationNotFoundError, StoreUnavailableError
from closer.api.models.control import (
    ControlActionResponse,
    ControlStatusResponse,
    OperatorReplyRequest,
    OperatorReplyResponse,
)
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import REQUEST_COUNT

logger = get_logger(__name__)

router = APIRouter(prefix="/conversations/{conversation_id}")


async def _verify_conversation_exists(
    conversations: ConversationStoreDep, conversation_id: UUID
) -> None:
    if await conversations.get(conversation_id) is None:
        raise ConversationNotFoundError(f"Conversation {conversation_id} not found")


@router.post("/reply", response_model=OperatorReplyResponse, status_code=201)
async def operator_reply(
    conversation_id: UUID,
    request: OperatorReplyRequest,
    conversations: ConversationStoreDep,
    pipeline: TurnPipelineDep,
    background_tasks: BackgroundTasks,
) -> OperatorReplyResponse:
    """Record a human operator reply; the bot is paused in the background."""
    await _verify_conversation_exists(conversations, conversation_id)
    background_tasks.add_task(pipeline.tasks.wait)

    try:
        message = await pipeline.operator_reply(conversation_id, request.text, request.operator)
    except StoreError as e:
        logger.error("operator_reply_failed", conversation_id=str(conversation_id), error=str(e))
        raise StoreUnavailableError("Could not record the reply") from e

    REQUEST_COUNT.labels(endpoint="operator_reply", status="ok").inc()
    return OperatorReplyResponse(
        message_id=message.id,
        conversation_id=conversation_id,
        created_at=message.created_at,
    )


@router.post("/resume", response_model=ControlActionResponse)
async def resume(conversation_id: UUID, control: BotControlDep) -> ControlActionResponse:
    """Hand the conversation back to the bot."""
    success = await control.resume(conversation_id)
    REQUEST_COUNT.labels(endpoint="resume", status="ok" if success else "failed").inc()
    return ControlActionResponse(conversation_id=conversation_id, success=success)


@router.post("/unsuppress", response_model=ControlActionResponse)
async def unsuppress(conversation_id: UUID, control: BotControlDep) -> ControlActionResponse:
    """Lift a broadcast suppression before it expires."""
    success = await control.unsuppress(conversation_id)
    REQUEST_COUNT.labels(endpoint="unsuppress", status="ok" if success else "failed").inc()
    return ControlActionResponse(conversation_id=conversation_id, success=success)


@router.get("/control", response_model=ControlStatusResponse)
async def get_control_status(
    conversation_id: UUID, control: BotControlDep
) -> ControlStatusResponse:
    """Current pause and suppress state, using the same policies as the pipeline."""
    status = await control.status(conversation_id)
    pause = status.pause
    suppress = status.suppress
    return ControlStatusResponse(
        conversation_id=conversation_id,
        paused=status.paused,
        paused_by=pause.paused_by if pause else None,
        paused_at=pause.paused_at if pause else None,
        suppressed=status.suppressed,
        campaign_id=suppress.campaign_id if suppress else None,
        suppress_expires_at=suppress.expires_at if suppress else None,
    )
