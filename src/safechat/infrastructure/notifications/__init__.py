"""Teacher notification adapters."""

from safechat.infrastructure.notifications.email_alerts import (
    EmailAlertDispatcher,
    build_alert_html,
    build_alert_subject,
    concern_level_display_name,
    concern_type_display_name,
)

__all__ = [
    "EmailAlertDispatcher",
    "build_alert_html",
    "build_alert_subject",
    "concern_level_display_name",
    "concern_type_display_name",
]
