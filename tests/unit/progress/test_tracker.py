"""Tests for the Progress Tracker."""

import re

from closer.config.models.control import ProgressConfig
from closer.conversation.models import Role, Turn
from closer.progress import (
    ADVANCE_INSTRUCTION,
    AskCategory,
    AskCategoryRegistry,
    ProgressContext,
    analyze_progress,
    default_registry,
)
from closer.progress.patterns import EMAIL
from closer.progress.tracker import count_asks, detect_stall


def a(text: str) -> Turn:
    return Turn(role=Role.ASSISTANT, content=text)


def u(text: str) -> Turn:
    return Turn(role=Role.USER, content=text)


class TestCountAsks:
    def test_unanswered_asks_accumulate(self) -> None:
        history = [
            a("¿Me compartes tu correo?"),
            u("luego te digo"),
            a("¿Cuál es tu correo?"),
            u("mañana"),
            a("Necesito tu email para enviarte la info"),
            u("hmm"),
        ]

        assert count_asks(history, default_registry())["email"] == 3

    def test_answer_resets_counter(self) -> None:
        history = [
            a("¿Me das tu correo?"),
            u("luego"),
            a("¿Me das tu correo?"),
            u("ana@example.com"),
        ]

        assert count_asks(history, default_registry())["email"] == 0

    def test_ask_without_following_turn_counts(self) -> None:
        history = [a("¿Cuántos mensajes al día recibes?")]

        assert count_asks(history, default_registry()) == {"volume": 1}

    def test_numeric_reply_answers_volume(self) -> None:
        history = [a("¿Cuántos mensajes al día recibes?"), u("unos 200")]

        assert count_asks(history, default_registry())["volume"] == 0

    def test_seeded_counts(self) -> None:
        history = [a("¿Agendamos una demo?"), u("no sé")]

        counts = count_asks(history, default_registry(), existing={"demo": 1})

        assert counts["demo"] == 2


class TestDetectStall:
    def test_needs_three_assistant_turns(self) -> None:
        history = [a("Lo mismo"), u("x"), a("Lo mismo")]
        assert detect_stall(history) == 0

    def test_repeated_openings_are_a_stall(self) -> None:
        same = "Te cuento que nuestro producto ayuda a vender más."
        history = [a(same), u("ajá"), a(same), u("bueno"), a(same), u("ya"), a(same)]

        assert detect_stall(history) == 4

    def test_varied_turns_are_not_a_stall(self) -> None:
        history = [a("Hola"), u("x"), a("Te cuento algo"), u("y"), a("Mira esto")]
        assert detect_stall(history) == 0

    def test_prefix_comparison_is_case_insensitive(self) -> None:
        history = [a("HOLA de nuevo"), a("hola de nuevo"), a("Hola de nuevo")]
        assert detect_stall(history) == 3


class TestAnalyzeProgress:
    def test_tier_two_instruction(self) -> None:
        history = [a("¿Me compartes tu correo?"), u("luego"), a("¿Tu correo?"), u("no")]

        result = analyze_progress(ProgressContext(history=history, turn_count=2))

        assert result.should_pivot is True
        assert result.ask_counts["email"] == 2
        assert result.pivot_instruction == EMAIL.tier_2_instruction

    def test_tier_three_instruction(self) -> None:
        history = [
            a("¿Me compartes tu correo?"),
            u("luego"),
            a("¿Tu correo?"),
            u("no"),
            a("¿Y tu email?"),
            u("hmm"),
        ]

        result = analyze_progress(ProgressContext(history=history, turn_count=3))

        assert result.pivot_instruction == EMAIL.tier_3_instruction

    def test_stall_appends_advance_instruction(self) -> None:
        same = "Te cuento que nuestro producto ayuda a vender más."
        history = [a(same), u("ajá"), a(same), u("bueno"), a(same), u("ya"), a(same)]

        result = analyze_progress(ProgressContext(history=history, turn_count=3))

        assert result.stalled_turns == 4
        assert result.should_pivot is True
        assert ADVANCE_INSTRUCTION in (result.pivot_instruction or "")

    def test_turn_count_forces_advance(self) -> None:
        result = analyze_progress(ProgressContext(history=[], turn_count=8))

        assert result.pivot_instruction == ADVANCE_INSTRUCTION

    def test_long_conversation_advances_below_category_threshold(self) -> None:
        history = [a("¿Qué tipo de negocio tienes?"), u("mmm")]
        for n in range(1, 9):
            history += [a(f"Punto {n}: te cuento sobre la plataforma."), u("mmm")]

        result = analyze_progress(
            ProgressContext(history=history, current_message="mmm", turn_count=9)
        )

        assert result.ask_counts["business_type"] == 1
        assert result.stalled_turns == 0
        assert result.should_pivot is True
        assert result.pivot_instruction == ADVANCE_INSTRUCTION
        assert result.progress_instruction.startswith("Llevas 9 turnos. La conversación NO avanza")

    def test_quiet_conversation(self) -> None:
        result = analyze_progress(ProgressContext(history=[a("Hola"), u("hola")], turn_count=1))

        assert result.should_pivot is False
        assert result.pivot_instruction is None
        assert result.progress_instruction == ""

    def test_progress_instruction_after_four_turns(self) -> None:
        steady = analyze_progress(ProgressContext(history=[], turn_count=4))
        assert steady.progress_instruction == (
            "Llevas 4 turnos. Asegúrate de avanzar hacia una propuesta concreta."
        )

        pivoting = analyze_progress(ProgressContext(history=[], turn_count=9))
        assert pivoting.progress_instruction.startswith("Llevas 9 turnos.")
        assert "Cambia de enfoque" in pivoting.progress_instruction

    def test_custom_thresholds(self) -> None:
        history = [a("¿Tu correo?"), u("no")]
        config = ProgressConfig(pivot_tier_2=1, pivot_tier_3=5)

        result = analyze_progress(ProgressContext(history=history), config=config)

        assert result.pivot_instruction == EMAIL.tier_2_instruction

    def test_registered_category(self) -> None:
        budget = AskCategory(
            name="budget",
            ask_pattern=re.compile(r"presupuesto", re.IGNORECASE),
            answer_pattern=re.compile(r"\d+"),
            tier_2_instruction="Deja de preguntar el presupuesto.",
            tier_3_instruction="Propón el plan básico.",
        )
        registry = AskCategoryRegistry([budget])
        history = [a("¿Qué presupuesto tienes?"), u("no sé"), a("¿Y el presupuesto?"), u("ni idea")]

        result = analyze_progress(ProgressContext(history=history), registry=registry)

        assert registry.names == ["budget"]
        assert len(registry) == 1
        assert result.pivot_instruction == "Deja de preguntar el presupuesto."
