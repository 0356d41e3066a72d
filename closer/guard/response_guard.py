"""Response Guard.

Post-generation shaping of agent replies for a chat channel: strips
markdown, bounds the number of sentences and keeps at most one question.
Deterministic and side-effect free.
"""

import re

from pydantic import BaseModel

SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
MARKDOWN_ARTIFACTS = re.compile(r"\*{1,2}|#{1,6}\s?")


class GuardResult(BaseModel):
    """Shaped reply plus why it was changed."""

    response: str
    was_guarded: bool = False
    reason: str | None = None


def _split_sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_END.split(text) if s.strip()]


def guard_response(response: str, max_sentences: int = 3) -> GuardResult:
    """Shape a generated reply.

    Steps, each recording a reason when it changes the text:
    1. strip markdown emphasis and heading markers
    2. over max_sentences: keep the first two sentences plus the last
       question when that question sits past position one, else the first
       max_sentences
    3. more than one "?": keep the first two non-question sentences plus
       the last question

    Empty input is returned unchanged. Non-empty input never yields an
    empty reply; if shaping would empty it, the trimmed input is returned
    unguarded.

    Args:
        response: Raw generator output
        max_sentences: Sentence budget

    Returns:
        GuardResult
    """
    if not response or not response.strip():
        return GuardResult(response=response or "", was_guarded=False)

    text = response.strip()
    was_guarded = False
    reasons: list[str] = []

    cleaned = MARKDOWN_ARTIFACTS.sub("", text)
    if cleaned != text:
        text = cleaned.strip()
        was_guarded = True
        reasons.append("stripped markdown")

    sentences = _split_sentences(text)
    if len(sentences) > max_sentences:
        questions = [s for s in sentences if "?" in s]
        last_question = questions[-1] if questions else None

        if last_question is not None and sentences.index(last_question) > 1:
            text = " ".join([*sentences[:2], last_question])
        else:
            text = " ".join(sentences[:max_sentences])
        was_guarded = True
        reasons.append(f"trimmed from {len(sentences)} to {max_sentences} sentences")

    if text.count("?") > 1:
        parts = _split_sentences(text)
        question_parts = [s for s in parts if "?" in s]
        if len(question_parts) > 1:
            statements = [s for s in parts if "?" not in s]
            text = " ".join([*statements[:2], question_parts[-1]])
            was_guarded = True
            reasons.append("removed duplicate questions")

    if not text.strip():
        return GuardResult(response=response.strip(), was_guarded=False)

    return GuardResult(
        response=text.strip(),
        was_guarded=was_guarded,
        reason="; ".join(reasons) if reasons else None,
    )
