"""Message rendering adapters."""

from release_notifier.adapters.digest.message_formatter import TextMessageFormatter, split_text

__all__ = ["TextMessageFormatter", "split_text"]
