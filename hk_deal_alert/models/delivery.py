"""
Message delivery result models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class DeliveryResult:
    """Outcome of sending one Telegram message, including retries spent."""

    success: bool
    delivery_time: datetime
    error_message: Optional[str] = None
    attempts: int = 1
    message_id: Optional[int] = None

    def validate(self) -> bool:
        if not isinstance(self.success, bool):
            raise ValueError("success must be a boolean")

        if not isinstance(self.delivery_time, datetime):
            raise ValueError("delivery_time must be a datetime")

        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

        if self.success and self.error_message:
            raise ValueError("a successful delivery cannot carry an error_message")

        if not self.success and not self.error_message:
            raise ValueError("failed deliveries require an error_message")

        if self.error_message is not None and len(self.error_message) > 500:
            raise ValueError("error_message exceeds 500 characters")

        return True
