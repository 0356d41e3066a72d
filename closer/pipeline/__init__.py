"""Per-message turn pipeline."""

from closer.pipeline.generator import (
    GenerationRequest,
    LLMReplyGenerator,
    ReplyGenerator,
)
from closer.pipeline.tasks import BackgroundTaskGroup
from closer.pipeline.turn import InboundMessage, TurnControlPlane, TurnOutcome, TurnStatus

__all__ = [
    "BackgroundTaskGroup",
    "GenerationRequest",
    "InboundMessage",
    "LLMReplyGenerator",
    "ReplyGenerator",
    "TurnControlPlane",
    "TurnOutcome",
    "TurnStatus",
]
