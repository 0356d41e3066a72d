"""Corporate auto-reply detection.

A bulk campaign often lands on business numbers that answer with an
automated greeting. Replying to those wastes a generation and can start a
bot-to-bot loop, so the first inbound message of a conversation is screened.
"""

import re

MIN_AUTORESPONDER_LENGTH = 40

DEFAULT_PATTERNS: tuple[str, ...] = (
    r"gracias por (comunicarte|contactarnos|escribirnos|tu mensaje)",
    r"hemos recibido (tu|su) (mensaje|solicitud|consulta)",
    r"te (responderemos|contestaremos|atenderemos) (a la brevedad|pronto|en breve)",
    r"nuestro horario de atenci[oó]n",
    r"en este momento no (podemos|estamos disponibles)",
    r"(tu|su) mensaje (ha sido|fue) recibido",
    r"respuesta autom[aá]tica",
    r"fuera de (horario|oficina|servicio)",
    r"este n[uú]mero es (solo|únicamente) para",
    r"auto[- ]?reply|out of office|automatic response",
    r"mensaje autom[aá]tico",
    r"estimado (cliente|usuario).*atenci[oó]n",
    r"horario de (operaci[oó]n|atenci[oó]n):\s",
    r"bienvenid[oa] a .{3,50}, un (asesor|ejecutivo|agente) te (atender[aá]|contactar[aá])",
    r"thank you for (contacting|reaching out|your message)",
    r"we have received your (message|request|inquiry)",
    r"we will (get back to you|respond) (shortly|soon|as soon as possible)",
)


class AutoResponderDetector:
    """Registry of auto-reply patterns with a minimum message length."""

    def __init__(
        self,
        patterns: tuple[str, ...] = DEFAULT_PATTERNS,
        min_length: int = MIN_AUTORESPONDER_LENGTH,
    ) -> None:
        self._patterns = [re.compile(p, re.IGNORECASE) for p in patterns]
        self._min_length = min_length

    def register(self, pattern: str) -> None:
        self._patterns.append(re.compile(pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        """Return True if text looks like an automated corporate reply."""
        if len(text) < self._min_length:
            return False
        return any(p.search(text) for p in self._patterns)


_default_detector = AutoResponderDetector()


def is_auto_responder(text: str) -> bool:
    return _default_detector.matches(text)
