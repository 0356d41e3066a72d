"""Pause/Suppress Controller and conversation lock."""

from closer.control.controller import (
    BotControl,
    get_bot_control,
    pause_bot,
    resume_bot,
    set_bot_control,
    suppress_bot_for_broadcast,
    unsuppress_bot_for_broadcast,
)
from closer.control.lock import ConversationLock, MessageDeduplicator
from closer.control.models import ControlStatus, PauseState, SuppressState

__all__ = [
    "BotControl",
    "ControlStatus",
    "ConversationLock",
    "MessageDeduplicator",
    "PauseState",
    "SuppressState",
    "get_bot_control",
    "pause_bot",
    "resume_bot",
    "set_bot_control",
    "suppress_bot_for_broadcast",
    "unsuppress_bot_for_broadcast",
]
