"""Pause/Suppress Controller.

Decides whether the agent may speak in a conversation. Two independent
flags are kept through the StateBridge:

- pause: set when a human operator replies; the agent stays silent until
  resumed.
- suppress: set for every recipient of a bulk campaign; longer lived and
  not overridable by tenant auto-reply settings.

Reads have opposite failure policies. is_paused fails closed: if control
state is unknown the agent must not speak. is_suppressed fails open: a
silencing side channel must not become an outage of the whole product.
"""

import asyncio
from collections.abc import Iterable
from datetime import timedelta
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from closer.config.models.control import ControlConfig
from closer.control.models import ControlStatus, PauseState, SuppressState, utc_now
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import CONTROL_CHECKS
from closer.state.bridge import StateBridge

logger = get_logger(__name__)

PAUSE_KEY_PREFIX = "bot_paused"
SUPPRESS_KEY_PREFIX = "bot_suppressed"


def pause_key(conversation_id: UUID) -> str:
    return f"{PAUSE_KEY_PREFIX}:{conversation_id}"


def suppress_key(conversation_id: UUID) -> str:
    return f"{SUPPRESS_KEY_PREFIX}:{conversation_id}"


class BotControl:
    """Pause and suppress flags for conversations, backed by a StateBridge."""

    def __init__(self, bridge: StateBridge, config: ControlConfig | None = None) -> None:
        self._bridge = bridge
        self._config = config or ControlConfig()

    async def pause(self, conversation_id: UUID, actor: str = "operator") -> bool:
        """Pause the agent for a conversation.

        Infrastructure errors are logged, never raised.

        Returns:
            True if the fast-store write succeeded
        """
        state = PauseState(
            conversation_id=conversation_id,
            paused_by=actor,
            ttl_seconds=self._config.pause_ttl_seconds,
        )
        try:
            await self._bridge.set(
                pause_key(conversation_id),
                state.model_dump_json(),
                self._config.pause_ttl_seconds,
            )
        except StoreError as e:
            logger.error(
                "bot_pause_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return False
        logger.info("bot_paused", conversation_id=str(conversation_id), paused_by=actor)
        return True

    async def resume(self, conversation_id: UUID) -> bool:
        """Clear the pause flag. Returns True if the fast-store delete succeeded."""
        try:
            await self._bridge.delete(pause_key(conversation_id))
        except StoreError as e:
            logger.error(
                "bot_resume_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return False
        logger.info("bot_resumed", conversation_id=str(conversation_id))
        return True

    async def get_pause_state(self, conversation_id: UUID) -> PauseState | None:
        """Read the pause record. Store errors propagate."""
        raw = await asyncio.wait_for(
            self._bridge.get(pause_key(conversation_id)),
            timeout=self._config.check_timeout_seconds,
        )
        if raw is None:
            return None
        return PauseState.model_validate_json(raw)

    async def is_paused(self, conversation_id: UUID) -> bool:
        """Return True if the agent must stay silent. Fails closed."""
        try:
            state = await self.get_pause_state(conversation_id)
        except Exception as e:  # any read failure means unknown state
            CONTROL_CHECKS.labels(check="pause", outcome="fail_closed").inc()
            logger.warning(
                "pause_check_failed_closed",
                conversation_id=str(conversation_id),
                error_type=type(e).__name__,
                error=str(e),
            )
            return True

        paused = state is not None and state.paused
        CONTROL_CHECKS.labels(check="pause", outcome="paused" if paused else "active").inc()
        return paused

    async def suppress_for_campaign(self, conversation_id: UUID, campaign_id: str) -> bool:
        """Silence the agent for a conversation during a bulk campaign.

        Returns:
            True if the fast-store write succeeded
        """
        ttl = self._config.suppress_ttl_seconds
        now = utc_now()
        state = SuppressState(
            conversation_id=conversation_id,
            campaign_id=campaign_id,
            suppressed_at=now,
            expires_at=now + timedelta(seconds=ttl),
            ttl_seconds=ttl,
        )
        try:
            await self._bridge.set(suppress_key(conversation_id), state.model_dump_json(), ttl)
        except StoreError as e:
            logger.error(
                "bot_suppress_failed",
                conversation_id=str(conversation_id),
                campaign_id=campaign_id,
                error=str(e),
            )
            return False
        logger.info(
            "bot_suppressed",
            conversation_id=str(conversation_id),
            campaign_id=campaign_id,
        )
        return True

    async def suppress_many(
        self,
        conversation_ids: Iterable[UUID],
        campaign_id: str,
    ) -> int:
        """Suppress every conversation of a campaign in chunks.

        Chunks run concurrently inside and are separated by
        suppress_chunk_delay_seconds to spread load on both stores.

        Returns:
            Number of conversations whose fast-store write succeeded
        """
        ids = list(conversation_ids)
        size = self._config.suppress_chunk_size
        succeeded = 0
        for start in range(0, len(ids), size):
            if start:
                await asyncio.sleep(self._config.suppress_chunk_delay_seconds)
            chunk = ids[start : start + size]
            results = await asyncio.gather(
                *(self.suppress_for_campaign(cid, campaign_id) for cid in chunk)
            )
            succeeded += sum(results)

        logger.info(
            "campaign_suppressed",
            campaign_id=campaign_id,
            total=len(ids),
            succeeded=succeeded,
        )
        return succeeded

    async def unsuppress(self, conversation_id: UUID) -> bool:
        """Clear the suppress flag. Returns True if the fast-store delete succeeded."""
        try:
            await self._bridge.delete(suppress_key(conversation_id))
        except StoreError as e:
            logger.error(
                "bot_unsuppress_failed",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            return False
        logger.info("bot_unsuppressed", conversation_id=str(conversation_id))
        return True

    async def get_suppress_state(self, conversation_id: UUID) -> SuppressState | None:
        """Read the suppress record. Store errors propagate."""
        raw = await asyncio.wait_for(
            self._bridge.get(suppress_key(conversation_id)),
            timeout=self._config.check_timeout_seconds,
        )
        if raw is None:
            return None
        return SuppressState.model_validate_json(raw)

    async def is_suppressed(self, conversation_id: UUID) -> bool:
        """Return True if a campaign silences the conversation. Fails open."""
        try:
            state = await self.get_suppress_state(conversation_id)
        except Exception as e:
            CONTROL_CHECKS.labels(check="suppress", outcome="fail_open").inc()
            logger.warning(
                "suppress_check_failed_open",
                conversation_id=str(conversation_id),
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        suppressed = state is not None and state.is_active()
        CONTROL_CHECKS.labels(
            check="suppress",
            outcome="suppressed" if suppressed else "active",
        ).inc()
        return suppressed

    async def status(self, conversation_id: UUID) -> ControlStatus:
        """Combined view for operators, applying the same failure policies."""
        paused = await self.is_paused(conversation_id)
        suppressed = await self.is_suppressed(conversation_id)
        pause: PauseState | None = None
        suppress: SuppressState | None = None
        try:
            pause = await self.get_pause_state(conversation_id)
            suppress = await self.get_suppress_state(conversation_id)
        except (StoreError, TimeoutError, PydanticValidationError) as e:
            logger.warning(
                "control_status_detail_unavailable",
                conversation_id=str(conversation_id),
                error=str(e),
            )
        return ControlStatus(
            conversation_id=conversation_id,
            paused=paused,
            suppressed=suppressed,
            pause=pause,
            suppress=suppress if suppress is not None and suppress.is_active() else None,
        )


# Global controller used by the module-level facades
_bot_control: BotControl | None = None


def get_bot_control() -> BotControl:
    """Get the global controller.

    Raises:
        RuntimeError: If set_bot_control has not been called
    """
    if _bot_control is None:
        raise RuntimeError("BotControl not configured; call set_bot_control() first")
    return _bot_control


def set_bot_control(control: BotControl | None) -> None:
    """Set (or with None, reset) the global controller."""
    global _bot_control
    _bot_control = control


async def pause_bot(conversation_id: UUID, paused_by: str = "operator") -> bool:
    """Pause the agent; called when a human operator replies."""
    return await get_bot_control().pause(conversation_id, paused_by)


async def resume_bot(conversation_id: UUID) -> bool:
    return await get_bot_control().resume(conversation_id)


async def suppress_bot_for_broadcast(conversation_id: UUID, campaign_id: str) -> bool:
    """Silence the agent for a conversation that received a bulk campaign."""
    return await get_bot_control().suppress_for_campaign(conversation_id, campaign_id)


async def unsuppress_bot_for_broadcast(conversation_id: UUID) -> bool:
    return await get_bot_control().unsuppress(conversation_id)
