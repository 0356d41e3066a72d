"""Tests for corporate auto-reply detection."""

from closer.progress import AutoResponderDetector, is_auto_responder


class TestIsAutoResponder:
    def test_business_greeting(self) -> None:
        text = (
            "Gracias por comunicarte con Farmacias del Centro. "
            "Nuestro horario de atención es de 9 a 18 hrs."
        )
        assert is_auto_responder(text) is True

    def test_english_out_of_office(self) -> None:
        text = "Thank you for contacting us. We will get back to you shortly."
        assert is_auto_responder(text) is True

    def test_short_messages_are_never_auto_replies(self) -> None:
        assert is_auto_responder("Gracias por tu mensaje") is False

    def test_human_reply(self) -> None:
        assert is_auto_responder("Hola, sí me interesa saber más del producto que ofrecen") is False


class TestAutoResponderDetector:
    def test_register_extra_pattern(self) -> None:
        detector = AutoResponderDetector(patterns=(), min_length=10)
        text = "Bienvenido al canal oficial, escribe MENU para opciones"

        assert detector.matches(text) is False
        detector.register(r"escribe menu")
        assert detector.matches(text) is True
