"""
Unit Tests for Log Redaction and Sentry Scrubbing

Student-authored text and secrets must never reach log sinks or
error tracking in full.
"""

import structlog

from safechat.config.logging_config import (
    _redact_sensitive_data,
    message_log_context,
)
from safechat.infrastructure.monitoring.sentry_integration import (
    _scrub_dict,
    _scrub_string,
    before_send,
)


class TestLogRedaction:

    def redact(self, **event):
        return _redact_sensitive_data(None, "info", event)

    def test_secrets_redacted(self):
        event = self.redact(api_key="sk-live-123", db_password="hunter2")

        assert event["api_key"] == "[REDACTED]"
        assert event["db_password"] == "[REDACTED]"

    def test_long_content_shortened(self):
        text = "I have been feeling really bad for weeks and nobody notices"

        event = self.redact(message_content=text)

        assert event["message_content"].startswith(text[:24])
        assert f"({len(text)} chars)" in event["message_content"]
        assert text not in event["message_content"]

    def test_short_email_masked(self):
        event = self.redact(email="a@b.co")

        assert event["email"] == "[MASKED]"

    def test_nested_values(self):
        event = self.redact(extra={"token": "abc", "level": 4})

        assert event["extra"] == {"token": "[REDACTED]", "level": 4}

    def test_ids_untouched(self):
        event = self.redact(message_id="m-1", concern_type="self_harm")

        assert event == {"message_id": "m-1", "concern_type": "self_harm"}


class TestMessageLogContext:

    def test_bindings_restored(self):
        structlog.contextvars.clear_contextvars()

        with message_log_context("m-1", "room-1"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["message_id"] == "m-1"
            assert bound["room_id"] == "room-1"

        assert "message_id" not in structlog.contextvars.get_contextvars()


class TestSentryScrubbing:

    def test_email_scrubbed_from_strings(self):
        assert "teacher@school.test" not in _scrub_string("alert to teacher@school.test failed")

    def test_bearer_scrubbed(self):
        assert "abc.def" not in _scrub_string("Authorization: Bearer abc.def")

    def test_content_keys_replaced(self):
        scrubbed = _scrub_dict({
            "message": "I want to kill myself",
            "excerpt": "I want to kill myself",
            "message_id": "m-1",
        })

        assert scrubbed == {
            "message": "[STUDENT_CONTENT]",
            "excerpt": "[STUDENT_CONTENT]",
            "message_id": "m-1",
        }

    def test_before_send_scrubs_request_body(self):
        event = {
            "request": {
                "data": {"message": "I want to kill myself", "room_id": "room-1"},
                "headers": {"Authorization": "Bearer xyz"},
            },
            "extra": {"api_key": "sk-1"},
        }

        result = before_send(event, {})

        assert result["request"]["data"]["message"] == "[STUDENT_CONTENT]"
        assert result["request"]["data"]["room_id"] == "room-1"
        assert result["request"]["headers"]["Authorization"] == "[REDACTED]"
        assert result["extra"]["api_key"] == "[REDACTED]"

    def test_raw_body_replaced(self):
        result = before_send({"request": {"data": "raw text body"}}, {})

        assert result["request"]["data"] == "[STUDENT_CONTENT]"
