"""Tests for structured logging and PII redaction."""

from closer.observability.logging import PIIRedactor, get_logger, setup_logging


class TestPIIRedactor:
    def setup_method(self) -> None:
        self.redactor = PIIRedactor()

    def test_sensitive_keys_are_replaced(self) -> None:
        event = self.redactor(None, "info", {"event": "x", "actor_phone": "+5215512345678"})

        assert event["actor_phone"] == "[REDACTED]"
        assert event["event"] == "x"

    def test_phone_numbers_in_values_are_masked(self) -> None:
        event = self.redactor(None, "info", {"event": "msg", "detail": "call +52 1 55 1234 5678 now"})

        assert "[PHONE]" in event["detail"]
        assert "1234" not in event["detail"]

    def test_emails_in_nested_values_are_masked(self) -> None:
        event = self.redactor(
            None,
            "info",
            {"event": "msg", "context": {"notes": ["write to ana@example.com"]}},
        )

        assert event["context"]["notes"] == ["write to [EMAIL]"]

    def test_uuids_and_counts_untouched(self) -> None:
        event = self.redactor(
            None,
            "info",
            {"event": "msg", "conversation_id": "3f1c2a9e-8b7d-4c6e-9f0a-1b2c3d4e5f60", "total": 12},
        )

        assert event["conversation_id"] == "3f1c2a9e-8b7d-4c6e-9f0a-1b2c3d4e5f60"
        assert event["total"] == 12


class TestSetupLogging:
    def test_json_with_redaction(self) -> None:
        setup_logging(level="INFO", format="json", redact_pii=True)
        get_logger("test").info("inbound_received", actor_phone="+5215512345678")

    def test_console_format(self) -> None:
        setup_logging(level="DEBUG", format="console", redact_pii=False)
        get_logger("test").debug("console_message")
