"""Rolling conversation state.

The state is persisted as a JSON document on the conversation row. Every
document carries a schema_version; documents written before versioning used
the keys current_phase and lead_interest_level and are migrated on read.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from closer.conversation.models.enums import InterestLevel
from closer.conversation.models.turn import utc_now
from closer.observability.logging import get_logger

logger = get_logger(__name__)

CURRENT_STATE_VERSION = 2

_LEGACY_KEYS = {
    "current_phase": "phase",
    "lead_interest_level": "interest_level",
}

_INTEREST_ALIASES = {
    "bajo": InterestLevel.LOW,
    "baja": InterestLevel.LOW,
    "medio": InterestLevel.MEDIUM,
    "media": InterestLevel.MEDIUM,
    "alto": InterestLevel.HIGH,
    "alta": InterestLevel.HIGH,
}


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        value = item.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class ConversationState(BaseModel):
    """Structured summary of a conversation, refreshed by the summarizer.

    Topics and objections behave as ordered sets.
    """

    schema_version: int = Field(default=CURRENT_STATE_VERSION)
    phase: str = Field(default="discovery", description="discovery, objection_handling, closing, ...")
    topics_covered: list[str] = Field(default_factory=list)
    objections_raised: list[str] = Field(default_factory=list)
    objections_resolved: list[str] = Field(default_factory=list)
    interest_level: InterestLevel = Field(default=InterestLevel.MEDIUM)
    next_action: str = Field(default="")
    summary: str = Field(default="", description="At most three sentences")
    message_count_at_update: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def migrate_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_version = data.get("schema_version")
        try:
            version = 1 if raw_version is None else int(raw_version)
        except (TypeError, ValueError):
            raise ValueError(f"unreadable schema_version: {raw_version!r}") from None
        if version >= CURRENT_STATE_VERSION:
            return data

        migrated = {k: v for k, v in data.items() if k not in _LEGACY_KEYS}
        for old, new in _LEGACY_KEYS.items():
            if old in data and new not in migrated:
                migrated[new] = data[old]
        migrated["schema_version"] = CURRENT_STATE_VERSION
        return migrated

    @field_validator("interest_level", mode="before")
    @classmethod
    def normalize_interest(cls, v: Any) -> Any:
        if isinstance(v, InterestLevel) or v is None:
            return v or InterestLevel.MEDIUM
        value = str(v).strip().lower()
        if value in _INTEREST_ALIASES:
            return _INTEREST_ALIASES[value]
        try:
            return InterestLevel(value)
        except ValueError:
            return InterestLevel.MEDIUM

    @field_validator("topics_covered", "objections_raised", "objections_resolved")
    @classmethod
    def dedupe_sets(cls, v: list[str]) -> list[str]:
        return _dedupe(v)

    @property
    def pending_objections(self) -> list[str]:
        resolved = set(self.objections_resolved)
        return [o for o in self.objections_raised if o not in resolved]

    def conserve(self, previous: "ConversationState | None") -> "ConversationState":
        """Return a copy whose sets include everything previous already knew."""
        if previous is None:
            return self
        return self.model_copy(
            update={
                "topics_covered": _dedupe(previous.topics_covered + self.topics_covered),
                "objections_raised": _dedupe(previous.objections_raised + self.objections_raised),
                "objections_resolved": _dedupe(
                    previous.objections_resolved + self.objections_resolved
                ),
            }
        )


def load_conversation_state(data: dict[str, Any] | str | None) -> ConversationState | None:
    """Validate a stored state document, migrating legacy layouts.

    Undecodable documents are logged and treated as absent so the next
    refresh rebuilds them.
    """
    if data is None:
        return None
    try:
        if isinstance(data, str):
            return ConversationState.model_validate_json(data)
        return ConversationState.model_validate(data)
    except ValidationError as e:
        logger.warning("conversation_state_invalid", error=str(e))
        return None
