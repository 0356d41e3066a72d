"""Conversation State Summarizer."""

from closer.summary.models import LeadContext, StateExtraction
from closer.summary.summarizer import ConversationStateSummarizer, format_state_for_prompt

__all__ = [
    "ConversationStateSummarizer",
    "LeadContext",
    "StateExtraction",
    "format_state_for_prompt",
]
