"""Release notifier.

Polls GitHub repositories for new releases, turns each changelog into a
translated and categorized summary with a language model, and posts it to
a Telegram chat.
"""

__version__ = "0.1.0"
