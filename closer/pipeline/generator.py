"""Reply generation seam.

The control plane does not write replies itself. It hands a
GenerationRequest to any ReplyGenerator; LLMReplyGenerator is the default
one backed by the LLM executor.
"""

from typing import Protocol

from pydantic import BaseModel, Field

from closer.conversation.models import Role, Turn
from closer.providers.llm import LLMExecutor, LLMMessage

DEFAULT_SYSTEM_INSTRUCTION = (
    "Eres un asesor comercial que conversa por WhatsApp. "
    "Responde en frases cortas, sin formato markdown, y haz como máximo una pregunta."
)


class GenerationRequest(BaseModel):
    """Everything a generator needs to produce one reply."""

    history: list[Turn] = Field(default_factory=list, description="Prior turns, oldest first")
    message: str = Field(..., description="Current inbound message")
    system_instruction: str = Field(default=DEFAULT_SYSTEM_INSTRUCTION)
    state_block: str = Field(default="", description="Rendered conversation state")
    pivot_instruction: str | None = None
    progress_instruction: str = ""

    def instructions(self) -> str:
        """System instruction followed by the non-empty control blocks."""
        blocks = [
            self.system_instruction,
            self.state_block,
            self.pivot_instruction or "",
            self.progress_instruction,
        ]
        return "\n\n".join(b for b in blocks if b)


class ReplyGenerator(Protocol):
    """Produces raw reply text; the response guard runs afterwards."""

    async def __call__(self, request: GenerationRequest) -> str: ...


class LLMReplyGenerator:
    """ReplyGenerator backed by an LLMExecutor."""

    def __init__(self, executor: LLMExecutor) -> None:
        self._executor = executor

    async def __call__(self, request: GenerationRequest) -> str:
        messages = [LLMMessage(role="system", content=request.instructions())]
        messages.extend(
            LLMMessage(role="user" if t.role == Role.USER else "assistant", content=t.content)
            for t in request.history
        )
        messages.append(LLMMessage(role="user", content=request.message))
        response = await self._executor.generate(messages)
        return response.content
