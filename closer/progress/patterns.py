"""Ask categories the agent tends to repeat.

Each category pairs an ask pattern (matched against assistant turns) with an
answer pattern (matched against the following user turn) and two escalating
pivot instructions. Categories live in a registry so new ones are additive.
Patterns cover Spanish and English; instructions are written in Spanish
because they are injected into a Spanish-speaking agent's prompt.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class AskCategory:
    """A question the agent may ask repeatedly, and how to recover from it."""

    name: str
    ask_pattern: re.Pattern[str]
    answer_pattern: re.Pattern[str]
    tier_2_instruction: str
    tier_3_instruction: str

    def is_ask(self, text: str) -> bool:
        return self.ask_pattern.search(text) is not None

    def is_answer(self, text: str) -> bool:
        return self.answer_pattern.search(text) is not None

    def instruction_for(self, count: int, tier_2: int = 2, tier_3: int = 3) -> str | None:
        """Pivot instruction for an unanswered-ask count, or None below tier 2."""
        if count >= tier_3:
            return self.tier_3_instruction
        if count >= tier_2:
            return self.tier_2_instruction
        return None


class AskCategoryRegistry:
    """Ordered collection of ask categories, keyed by name."""

    def __init__(self, categories: list[AskCategory] | None = None) -> None:
        self._categories: dict[str, AskCategory] = {}
        for category in categories or []:
            self.register(category)

    def register(self, category: AskCategory) -> None:
        """Add a category, replacing any existing one with the same name."""
        self._categories[category.name] = category

    def get(self, name: str) -> AskCategory | None:
        return self._categories.get(name)

    def __iter__(self) -> Iterator[AskCategory]:
        return iter(self._categories.values())

    def __len__(self) -> int:
        return len(self._categories)

    @property
    def names(self) -> list[str]:
        return list(self._categories)


EMAIL = AskCategory(
    name="email",
    ask_pattern=re.compile(r"correo|email|e-mail|mail|@", re.IGNORECASE),
    answer_pattern=re.compile(r"@.*\."),
    tier_2_instruction="Ya preguntaste el correo. Reformula o avanza sin esa info.",
    tier_3_instruction="NO pidas email de nuevo. Ofrece enviar link por WhatsApp directo.",
)

VOLUME = AskCategory(
    name="volume",
    ask_pattern=re.compile(
        r"cu[aá]ntos mensajes|volumen|cu[aá]ntos clientes|mensajes al d[ií]a|mensajes diarios"
        r"|how many messages|how many customers|messages (?:a|per) day|volume",
        re.IGNORECASE,
    ),
    answer_pattern=re.compile(r"\d+"),
    tier_2_instruction=(
        "Ya preguntaste volumen. Si no responde con cifra, asume volumen medio y avanza."
    ),
    tier_3_instruction=(
        "NO preguntes volumen de nuevo. Propón demo basándote en lo que ya sabes."
    ),
)

BUSINESS_TYPE = AskCategory(
    name="business_type",
    ask_pattern=re.compile(
        r"qu[eé] tipo de negocio|a qu[eé] te dedicas|qu[eé] vendes|qu[eé] negocio|tipo de empresa"
        r"|what kind of business|what type of business|what do you sell|what does your company do",
        re.IGNORECASE,
    ),
    answer_pattern=re.compile(
        r"tienda|negocio|vendo|empresa|servicios|consultorio|restaurante|cl[ií]nica|agencia"
        r"|store|shop|business|company|restaurant|clinic|agency|we sell",
        re.IGNORECASE,
    ),
    tier_2_instruction=(
        "Ya preguntaste tipo de negocio. Si no responde claro, asume servicio/producto "
        "genérico y avanza."
    ),
    tier_3_instruction=(
        "NO preguntes tipo de negocio de nuevo. Da info general y propón demo."
    ),
)

DEMO = AskCategory(
    name="demo",
    ask_pattern=re.compile(
        r"demo|reuni[oó]n|te muestro|quieres ver|agendamos|llamada"
        r"|meeting|schedule a call|want to see",
        re.IGNORECASE,
    ),
    answer_pattern=re.compile(
        r"s[ií]|dale|claro|ok|va|sale|perfecto|me interesa|quiero"
        r"|yes|sure|sounds good|interested",
        re.IGNORECASE,
    ),
    tier_2_instruction=(
        "Ya propusiste demo. Si no acepta, ofrece info/brochure como alternativa."
    ),
    tier_3_instruction=(
        "El usuario no quiere demo aún. Envía brochure o info y ofrece retomar después."
    ),
)


def default_registry() -> AskCategoryRegistry:
    """Registry with the built-in email, volume, business_type and demo categories."""
    return AskCategoryRegistry([EMAIL, VOLUME, BUSINESS_TYPE, DEMO])
