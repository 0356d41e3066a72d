"""Progress Tracker.

Scans the visible history for questions the agent keeps repeating without an
answer, and for loops where recent assistant turns say the same thing. The
output is advisory text for the generator prompt; the tracker never produces
a reply itself.
"""

import math

from pydantic import BaseModel, Field

from closer.config.models.control import ProgressConfig
from closer.conversation.models import Role, Turn
from closer.observability.logging import get_logger
from closer.observability.metrics import PIVOTS
from closer.progress.patterns import AskCategoryRegistry, default_registry

logger = get_logger(__name__)

ADVANCE_INSTRUCTION = (
    "DEBES avanzar a la siguiente fase AHORA con una propuesta concreta. "
    "No repitas lo que ya dijiste."
)
PIVOT_PROGRESS_SUFFIX = "La conversación NO avanza. Cambia de enfoque."
STEADY_PROGRESS_SUFFIX = "Asegúrate de avanzar hacia una propuesta concreta."

# Fewer recent assistant turns than this cannot be called a loop
MIN_STALL_SAMPLE = 3
STALL_PREFIX_CHARS = 80


class ProgressContext(BaseModel):
    """Input to a progress pass."""

    history: list[Turn] = Field(default_factory=list)
    current_message: str = ""
    turn_count: int = 0
    existing_ask_counts: dict[str, int] | None = None


class ProgressResult(BaseModel):
    """Advisory output of a progress pass."""

    ask_counts: dict[str, int] = Field(default_factory=dict)
    should_pivot: bool = False
    pivot_instruction: str | None = None
    progress_instruction: str = ""
    stalled_turns: int = 0


def count_asks(
    history: list[Turn],
    registry: AskCategoryRegistry,
    existing: dict[str, int] | None = None,
) -> dict[str, int]:
    """Count unanswered asks per category over the whole history.

    An ask answered by the immediately following user turn resets its
    category to zero; any other ask increments it.
    """
    counts = dict(existing or {})
    for index, turn in enumerate(history):
        if turn.role != Role.ASSISTANT:
            continue
        following = history[index + 1] if index + 1 < len(history) else None
        for category in registry:
            if not category.is_ask(turn.content):
                continue
            answered = (
                following is not None
                and following.role == Role.USER
                and category.is_answer(following.content)
            )
            counts[category.name] = 0 if answered else counts.get(category.name, 0) + 1
    return counts


def detect_stall(history: list[Turn], window: int = 4) -> int:
    """Return the number of recent assistant turns that are looping, or 0."""
    recent = [t for t in history if t.role == Role.ASSISTANT][-window:]
    if len(recent) < MIN_STALL_SAMPLE:
        return 0
    prefixes = [t.content.lower()[:STALL_PREFIX_CHARS] for t in recent]
    if len(set(prefixes)) <= math.ceil(len(prefixes) / 2):
        return len(recent)
    return 0


def analyze_progress(
    ctx: ProgressContext,
    registry: AskCategoryRegistry | None = None,
    config: ProgressConfig | None = None,
) -> ProgressResult:
    """Compute ask counters, stall and the instructions to inject.

    Args:
        ctx: History, current message, turn counter and seeded counters
        registry: Ask categories (defaults to the built-in four)
        config: Thresholds

    Returns:
        ProgressResult with pivot and progress instructions
    """
    registry = registry or default_registry()
    config = config or ProgressConfig()

    ask_counts = count_asks(ctx.history, registry, ctx.existing_ask_counts)
    stalled_turns = detect_stall(ctx.history, config.stall_window)

    instructions: list[str] = []
    for name, count in ask_counts.items():
        category = registry.get(name)
        if category is None:
            continue
        instruction = category.instruction_for(
            count, config.pivot_tier_2, config.pivot_tier_3
        )
        if instruction:
            instructions.append(instruction)
            PIVOTS.labels(category=name).inc()

    if stalled_turns >= config.stall_turns or ctx.turn_count >= config.max_turns_before_advance:
        instructions.append(ADVANCE_INSTRUCTION)
        PIVOTS.labels(category="advance").inc()

    should_pivot = bool(instructions)
    pivot_instruction = "\n".join(instructions) if instructions else None

    progress_instruction = ""
    if ctx.turn_count >= config.progress_after_turns:
        suffix = PIVOT_PROGRESS_SUFFIX if should_pivot else STEADY_PROGRESS_SUFFIX
        progress_instruction = f"Llevas {ctx.turn_count} turnos. {suffix}"

    if should_pivot:
        logger.info(
            "progress_pivot",
            ask_counts=ask_counts,
            stalled_turns=stalled_turns,
            turn_count=ctx.turn_count,
        )

    return ProgressResult(
        ask_counts=ask_counts,
        should_pivot=should_pivot,
        pivot_instruction=pivot_instruction,
        progress_instruction=progress_instruction,
        stalled_turns=stalled_turns,
    )
