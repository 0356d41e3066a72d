"""Summarizer input and model output schemas."""

from pydantic import BaseModel, Field


class LeadContext(BaseModel):
    """What is known about the lead outside the conversation."""

    name: str | None = None
    company: str | None = None
    industry: str | None = None


class StateExtraction(BaseModel):
    """Structured output requested from the model."""

    phase: str = Field(
        ..., description="Current phase, e.g. discovery, objection_handling, closing, follow_up"
    )
    topics_covered: list[str] = Field(
        default_factory=list, description="Every topic already covered, e.g. pricing, features"
    )
    objections_raised: list[str] = Field(
        default_factory=list, description="Objections the lead has expressed"
    )
    objections_resolved: list[str] = Field(
        default_factory=list, description="Objections already resolved"
    )
    interest_level: str = Field(..., description="low, medium or high")
    next_action: str = Field(..., description="Recommended next action for the agent")
    summary: str = Field(
        ...,
        description="What the lead wants, what was offered and what was agreed; max 3 sentences",
    )
