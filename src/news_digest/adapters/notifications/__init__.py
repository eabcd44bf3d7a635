"""Notification adapters."""

from news_digest.adapters.notifications.email_notifier import SmtpDeliverer

__all__ = ["SmtpDeliverer"]
