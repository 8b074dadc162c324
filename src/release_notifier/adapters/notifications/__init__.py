"""Notification adapters."""

from release_notifier.adapters.notifications.telegram_notifier import TelegramNotifier

__all__ = ["TelegramNotifier"]
