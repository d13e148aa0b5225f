"""
Telegram-specific data models for the HealthKart Deal Alert system.
"""

from dataclasses import dataclass
from typing import Optional

# Telegram rejects messages longer than this.
MAX_MESSAGE_LENGTH = 4096


@dataclass(frozen=True)
class TelegramMessage:
    """An outgoing chat message."""

    chat_id: str
    text: str
    parse_mode: Optional[str] = "HTML"
    disable_web_page_preview: bool = True

    def validate(self) -> bool:
        """Validate message data."""
        if not self.chat_id or not str(self.chat_id).strip():
            raise ValueError("chat_id cannot be empty")

        if not self.text or not self.text.strip():
            raise ValueError("Message text cannot be empty")

        if len(self.text) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters)")

        if self.parse_mode not in (None, "HTML", "Markdown", "MarkdownV2"):
            raise ValueError(f"Unsupported parse_mode: {self.parse_mode}")

        return True


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of the bot connectivity self-test."""

    success: bool
    bot_username: Optional[str] = None
    bot_id: Optional[int] = None
    error: Optional[str] = None
