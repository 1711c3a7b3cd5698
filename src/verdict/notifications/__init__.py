"""Run notifications."""

from verdict.notifications.base import Notifier, should_notify, summary_line
from verdict.notifications.log import LoggingNotifier
from verdict.notifications.webhook import WebhookNotifier


__all__ = ["LoggingNotifier", "Notifier", "WebhookNotifier", "should_notify", "summary_line"]
