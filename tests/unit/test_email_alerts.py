"""
Unit Tests for Teacher Alert Emails

SMTP is patched; nothing leaves the process.
"""

import smtplib
from unittest.mock import patch

import pytest
from pydantic import SecretStr

from safechat.config.settings import SmtpSettings
from safechat.domain.enums.concern import ConcernCategory, ConcernLevel
from safechat.infrastructure.notifications.email_alerts import (
    EmailAlertDispatcher,
    build_alert_html,
    build_alert_subject,
    concern_level_display_name,
    concern_type_display_name,
)

SMTP_PATH = "safechat.infrastructure.notifications.email_alerts.smtplib"


@pytest.fixture
def smtp_settings() -> SmtpSettings:
    return SmtpSettings(
        host="smtp.school.test",
        port=587,
        user="alerts",
        password=SecretStr("smtp-pass"),
        from_address="SafeChat <alerts@school.test>",
    )


@pytest.fixture
def alert_kwargs() -> dict:
    return {
        "teacher_email": "teacher@school.test",
        "student_name": "Sam Lee",
        "room_name": "Year 9 Science",
        "concern_type": ConcernCategory.SELF_HARM,
        "concern_level": ConcernLevel.HIGH,
        "excerpt": "I want to kill myself",
        "review_url": "https://safechat.test/teacher-dashboard/concerns/flag-1",
    }


class TestDisplayNames:

    def test_type_names(self):
        assert concern_type_display_name(ConcernCategory.FAMILY_ISSUES) == "Family Issues"
        assert concern_type_display_name(None) == "Unknown Concern"

    @pytest.mark.parametrize("level,expected", [
        (0, "Low"),
        (1, "Minor"),
        (3, "Significant"),
        (5, "Critical"),
        (9, "Critical"),
    ])
    def test_level_names(self, level, expected):
        assert concern_level_display_name(level) == expected


class TestAlertContent:

    def test_subject(self):
        subject = build_alert_subject("SafeChat", "Sam Lee", ConcernCategory.SELF_HARM, 4)

        assert subject == "[SafeChat] High Self Harm Alert for Student: Sam Lee"

    def test_html_escapes_student_text(self):
        html = build_alert_html(
            "SafeChat",
            "Sam <b>Lee</b>",
            "Room",
            ConcernCategory.BULLYING,
            3,
            "<script>alert(1)</script>",
            "https://safechat.test/teacher-dashboard/concerns/f1",
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Sam &lt;b&gt;Lee&lt;/b&gt;" in html
        assert 'href="https://safechat.test/teacher-dashboard/concerns/f1"' in html
        assert "Significant (Level 3)" in html


class TestDispatch:

    async def test_sends_via_starttls(self, smtp_settings, alert_kwargs):
        dispatcher = EmailAlertDispatcher(smtp_settings, app_name="SafeChat")

        with patch(f"{SMTP_PATH}.SMTP") as smtp_cls:
            client = smtp_cls.return_value.__enter__.return_value
            sent = await dispatcher.send_teacher_alert(**alert_kwargs)

        assert sent is True
        client.starttls.assert_called_once()
        client.login.assert_called_once_with("alerts", "smtp-pass")
        message = client.send_message.call_args.args[0]
        assert message["To"] == "teacher@school.test"
        assert message["Subject"].startswith("[SafeChat] High Self Harm Alert")

    async def test_implicit_tls_port(self, smtp_settings, alert_kwargs):
        smtp_settings.port = 465
        dispatcher = EmailAlertDispatcher(smtp_settings)

        with patch(f"{SMTP_PATH}.SMTP_SSL") as smtp_ssl_cls:
            sent = await dispatcher.send_teacher_alert(**alert_kwargs)

        assert sent is True
        smtp_ssl_cls.assert_called_once()

    async def test_smtp_failure_returns_false(self, smtp_settings, alert_kwargs):
        dispatcher = EmailAlertDispatcher(smtp_settings)

        with patch(f"{SMTP_PATH}.SMTP") as smtp_cls:
            client = smtp_cls.return_value.__enter__.return_value
            client.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            sent = await dispatcher.send_teacher_alert(**alert_kwargs)

        assert sent is False

    async def test_unconfigured_smtp(self, alert_kwargs):
        dispatcher = EmailAlertDispatcher(SmtpSettings(host="", user="", password=SecretStr("")))

        with patch(f"{SMTP_PATH}.SMTP") as smtp_cls:
            sent = await dispatcher.send_teacher_alert(**alert_kwargs)

        assert sent is False
        smtp_cls.assert_not_called()

    @pytest.mark.parametrize("missing", ["teacher_email", "student_name", "excerpt", "review_url"])
    async def test_missing_fields(self, smtp_settings, alert_kwargs, missing):
        alert_kwargs[missing] = ""
        dispatcher = EmailAlertDispatcher(smtp_settings)

        with patch(f"{SMTP_PATH}.SMTP") as smtp_cls:
            sent = await dispatcher.send_teacher_alert(**alert_kwargs)

        assert sent is False
        smtp_cls.assert_not_called()
