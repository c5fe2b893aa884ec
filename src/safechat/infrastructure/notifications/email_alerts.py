"""
Teacher Alert Emails

SMTP implementation of the AlertDispatcher boundary. Sends an HTML
welfare alert to the room's teacher when a Flag is created.

Best effort: failures are logged and reported as False, never
raised, and never retried.

SECURITY: The message excerpt is HTML-escaped. Recipient addresses
are masked by the log processors.
"""

import asyncio
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Optional

from safechat.config.logging_config import get_logger
from safechat.config.settings import SmtpSettings
from safechat.domain.enums.concern import ConcernCategory, ConcernLevel
from safechat.services.safety.interfaces import AlertDispatcher

logger = get_logger(__name__)

IMPLICIT_TLS_PORT = 465


def concern_type_display_name(concern_type: Optional[ConcernCategory]) -> str:
    """e.g. FAMILY_ISSUES -> "Family Issues"."""
    if not concern_type:
        return "Unknown Concern"
    return ConcernCategory(concern_type).display_name


def concern_level_display_name(level: int) -> str:
    """Level name for alerts; levels above 5 read as Critical, below 1 as Low."""
    if level >= ConcernLevel.CRITICAL:
        return "Critical"
    if level <= ConcernLevel.NONE:
        return "Low"
    return ConcernLevel(int(level)).display_name


def build_alert_subject(app_name: str, student_name: str, concern_type: ConcernCategory, concern_level: int) -> str:
    return (
        f"[{app_name}] {concern_level_display_name(concern_level)} "
        f"{concern_type_display_name(concern_type)} Alert for Student: {student_name}"
    )


def build_alert_html(
    app_name: str,
    student_name: str,
    room_name: str,
    concern_type: ConcernCategory,
    concern_level: int,
    excerpt: str,
    review_url: str,
    detected_at: Optional[datetime] = None,
) -> str:
    """Render the alert body. All interpolated values are escaped."""
    detected_at = detected_at or datetime.utcnow()
    return f"""<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: sans-serif; line-height: 1.6; color: #333; }}
    h2 {{ color: #6B50B7; }}
    h3 {{ color: #4A3889; }}
    ul {{ list-style: none; padding: 0; }}
    li {{ margin-bottom: 5px; }}
    blockquote {{ border-left: 4px solid #E5E7EB; margin-left: 0; color: #555; background-color: #F9FAFB; padding: 10px 15px; }}
    a.button {{ display: inline-block; padding: 12px 24px; background-color: #6B50B7; color: white !important; text-decoration: none; border-radius: 6px; font-weight: bold; }}
  </style>
</head>
<body>
  <h2>{escape(app_name)} - Student Welfare Alert</h2>
  <p>A message from a student in one of your classrooms has been automatically flagged for a potential welfare concern based on its content.</p>
  <p>Please review the details below and the conversation context as soon as possible.</p>

  <h3>Alert Details:</h3>
  <ul>
    <li><strong>Student:</strong> {escape(student_name)}</li>
    <li><strong>Classroom:</strong> {escape(room_name)}</li>
    <li><strong>Concern Type:</strong> {escape(concern_type_display_name(concern_type))}</li>
    <li><strong>Assessed Level:</strong> {concern_level_display_name(concern_level)} (Level {int(concern_level)})</li>
    <li><strong>Time Detected:</strong> {detected_at.strftime("%Y-%m-%d %H:%M UTC")}</li>
  </ul>

  <h3>Flagged Message:</h3>
  <blockquote>
    <p>{escape(excerpt)}</p>
  </blockquote>

  <p>Click the button below to view the full conversation context and manage this alert:</p>
  <p style="text-align: center;">
    <a href="{escape(review_url, quote=True)}" class="button">Review Concern Now</a>
  </p>
  <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
  <p style="font-size: 0.9em; color: #777;">This is an automated message from {escape(app_name)}. Please do not reply directly to this email.</p>
</body>
</html>
"""


class EmailAlertDispatcher(AlertDispatcher):
    """
    SMTP teacher alert dispatcher.

    smtplib is blocking, so each send runs in a worker thread.

    Usage:
        dispatcher = EmailAlertDispatcher(settings.smtp, app_name=settings.app_name)
        sent = await dispatcher.send_teacher_alert(...)
    """

    def __init__(self, smtp: SmtpSettings, app_name: str = "SafeChat") -> None:
        self._smtp = smtp
        self._app_name = app_name

    @property
    def is_configured(self) -> bool:
        return self._smtp.is_configured

    async def send_teacher_alert(
        self,
        teacher_email: str,
        student_name: str,
        room_name: str,
        concern_type: ConcernCategory,
        concern_level: ConcernLevel,
        excerpt: str,
        review_url: str,
    ) -> bool:
        missing = [
            name for name, value in (
                ("teacher_email", teacher_email),
                ("student_name", student_name),
                ("room_name", room_name),
                ("excerpt", excerpt),
                ("review_url", review_url),
            )
            if not value
        ]
        if missing or concern_level < 0:
            logger.error("Missing required information for teacher alert", missing=missing)
            return False

        if not self.is_configured:
            logger.error("SMTP configuration is missing, cannot send alert email")
            return False

        message = EmailMessage()
        message["Subject"] = build_alert_subject(self._app_name, student_name, concern_type, concern_level)
        message["From"] = self._smtp.from_address
        message["To"] = teacher_email
        message.set_content(
            f"A student message in {room_name} was flagged for review. "
            f"Open {review_url} to review the concern."
        )
        message.add_alternative(
            build_alert_html(
                self._app_name,
                student_name,
                room_name,
                concern_type,
                concern_level,
                excerpt,
                review_url,
            ),
            subtype="html",
        )

        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Teacher alert email failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logger.info("Teacher alert email sent", concern_type=ConcernCategory(concern_type).value)
        return True

    def _send(self, message: EmailMessage) -> None:
        smtp = self._smtp
        password = smtp.password.get_secret_value()
        if smtp.port == IMPLICIT_TLS_PORT:
            with smtplib.SMTP_SSL(
                smtp.host, smtp.port, timeout=smtp.timeout_seconds,
                context=ssl.create_default_context(),
            ) as client:
                client.login(smtp.user, password)
                client.send_message(message)
        else:
            with smtplib.SMTP(smtp.host, smtp.port, timeout=smtp.timeout_seconds) as client:
                client.starttls(context=ssl.create_default_context())
                client.login(smtp.user, password)
                client.send_message(message)
