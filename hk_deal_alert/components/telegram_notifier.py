"""
Telegram notification component for the HealthKart Deal Alert system.

This module delivers formatted deal alerts through the Telegram Bot API
using python-telegram-bot, with bounded retries around each send.
"""

from datetime import datetime
from typing import List, Optional

from telegram import Bot, LinkPreviewOptions
from telegram.error import (
    BadRequest,
    EndPointNotFound,
    Forbidden,
    InvalidToken,
    TelegramError,
)

from ..models.delivery import DeliveryResult
from ..models.product import Product
from ..models.telegram import ConnectionTestResult, TelegramMessage
from ..utils.error_handling import (
    RetryConfig,
    notification_error,
    sanitize_error_message,
    with_retry,
)
from ..utils.logging import get_logger
from .alert_formatter import AlertFormatter

# Provider responses that will not succeed on retry.
NON_RETRYABLE_ERRORS = (BadRequest, Forbidden, InvalidToken, EndPointNotFound)


class TelegramNotifier:
    """Sends deal alerts to a Telegram chat."""

    def __init__(
        self,
        bot: Bot,
        chat_id: str,
        formatter: Optional[AlertFormatter] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize notifier.

        Args:
            bot: python-telegram-bot Bot instance
            chat_id: Default destination chat
            formatter: Message formatter
            retry_config: Retry behaviour for each send
        """
        self.bot = bot
        self.chat_id = str(chat_id)
        self.formatter = formatter or AlertFormatter()
        self.retry_config = retry_config or RetryConfig(max_retries=3, base_delay=1.0)
        self.logger = get_logger("telegram.notifier")
        self._initialized = False

    @classmethod
    def from_token(
        cls,
        bot_token: str,
        chat_id: str,
        formatter: Optional[AlertFormatter] = None,
        retry_config: Optional[RetryConfig] = None,
    ) -> "TelegramNotifier":
        return cls(Bot(token=bot_token), chat_id, formatter, retry_config)

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.bot.initialize()
            self._initialized = True

    async def close(self) -> None:
        if self._initialized:
            await self.bot.shutdown()
            self._initialized = False

    async def send_message(self, message: TelegramMessage) -> DeliveryResult:
        """
        Deliver one message with retries.

        Raises:
            DealAlertError: NOTIFICATION for rejected messages, or
                RETRY_EXHAUSTED when transient failures persist
        """
        message.validate()
        attempts = 0

        async def attempt():
            nonlocal attempts
            attempts += 1
            try:
                await self._ensure_initialized()
                return await self.bot.send_message(
                    chat_id=message.chat_id,
                    text=message.text,
                    parse_mode=message.parse_mode,
                    link_preview_options=LinkPreviewOptions(
                        is_disabled=message.disable_web_page_preview
                    ),
                )
            except NON_RETRYABLE_ERRORS as e:
                raise notification_error(
                    f"Telegram rejected message: {sanitize_error_message(str(e))}",
                    chat_id=message.chat_id,
                    error_code=type(e).__name__,
                    retryable=False,
                ) from e
            except TelegramError as e:
                raise notification_error(
                    f"Telegram delivery failed: {sanitize_error_message(str(e))}",
                    chat_id=message.chat_id,
                    error_code=type(e).__name__,
                    retryable=True,
                ) from e

        sent = await with_retry(attempt, self.retry_config, operation_name="Telegram sendMessage")

        self.logger.info(
            "Telegram message sent",
            extra={"chat_id": message.chat_id, "attempts": attempts, "length": len(message.text)},
        )
        result = DeliveryResult(
            success=True,
            delivery_time=datetime.now(),
            attempts=attempts,
            message_id=getattr(sent, "message_id", None),
        )
        result.validate()
        return result

    async def send_deal_alerts(
        self,
        products: List[Product],
        chat_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[DeliveryResult]:
        """
        Send one consolidated message for the top products by discount.

        Returns None without sending when ``products`` is empty.
        """
        if not products:
            self.logger.info("No products to alert on, skipping Telegram message")
            return None

        text = self.formatter.format_consolidated_alert(products, timestamp or datetime.now())
        self.logger.info(
            "Sending consolidated deal alert",
            extra={
                "products": len(products),
                "included": min(len(products), self.formatter.max_products),
            },
        )
        return await self.send_message(TelegramMessage(chat_id=chat_id or self.chat_id, text=text))

    async def send_deal_alert(self, product: Product, chat_id: Optional[str] = None) -> DeliveryResult:
        """Send an alert for a single product."""
        text = self.formatter.format_product_alert(product, datetime.now())
        return await self.send_message(TelegramMessage(chat_id=chat_id or self.chat_id, text=text))

    async def send_monitoring_summary(
        self,
        total_products: int,
        matching_products: int,
        top_deals: List[Product],
        errors: Optional[List[str]] = None,
        chat_id: Optional[str] = None,
    ) -> DeliveryResult:
        """Send a summary of one monitoring cycle."""
        text = self.formatter.format_monitoring_summary(
            total_products, matching_products, top_deals, datetime.now(), errors
        )
        return await self.send_message(TelegramMessage(chat_id=chat_id or self.chat_id, text=text))

    async def test_connection(self) -> ConnectionTestResult:
        """Verify the bot token and chat by fetching bot identity and sending a canary."""
        try:
            await self._ensure_initialized()
            me = await self.bot.get_me()
            self.logger.info("Telegram bot identity verified", extra={"bot_username": me.username})

            await self.send_message(
                TelegramMessage(
                    chat_id=self.chat_id,
                    text="✅ <b>HealthKart Deal Alert</b>\nConnection test successful.",
                )
            )
            return ConnectionTestResult(success=True, bot_username=me.username, bot_id=me.id)

        except Exception as e:
            error = sanitize_error_message(str(e))
            self.logger.error("Telegram connection test failed", extra={"error": error})
            return ConnectionTestResult(success=False, error=error)
