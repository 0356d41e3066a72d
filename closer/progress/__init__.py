"""Progress Tracker: anti-loop and forward-progress instructions."""

from closer.progress.autoresponder import AutoResponderDetector, is_auto_responder
from closer.progress.patterns import AskCategory, AskCategoryRegistry, default_registry
from closer.progress.tracker import (
    ADVANCE_INSTRUCTION,
    ProgressContext,
    ProgressResult,
    analyze_progress,
)

__all__ = [
    "ADVANCE_INSTRUCTION",
    "AskCategory",
    "AskCategoryRegistry",
    "AutoResponderDetector",
    "ProgressContext",
    "ProgressResult",
    "analyze_progress",
    "default_registry",
    "is_auto_responder",
]
