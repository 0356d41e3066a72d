"""Broadcast suppression endpoint."""

from fastapi import APIRouter

from closer.api.dependencies import BotControlDep
from closer.api.models.control import SuppressBroadcastRequest, SuppressBroadcastResponse
from closer.observability.logging import get_logger
from closer.observability.metrics import REQUEST_COUNT

logger = get_logger(__name__)

router = APIRouter(prefix="/broadcasts")


@router.post("/{campaign_id}/suppress", response_model=SuppressBroadcastResponse)
async def suppress_broadcast(
    campaign_id: str,
    request: SuppressBroadcastRequest,
    control: BotControlDep,
) -> SuppressBroadcastResponse:
    """Suppress the bot on every conversation a campaign is about to reach.

    Runs in chunks; the response reports how many conversations were
    suppressed in the fast store.
    """
    logger.info(
        "suppress_broadcast_request",
        campaign_id=campaign_id,
        conversations=len(request.conversation_ids),
    )
    suppressed = await control.suppress_many(request.conversation_ids, campaign_id)
    REQUEST_COUNT.labels(endpoint="suppress_broadcast", status="ok").inc()
    return SuppressBroadcastResponse(
        campaign_id=campaign_id,
        requested=len(request.conversation_ids),
        suppressed=suppressed,
    )
