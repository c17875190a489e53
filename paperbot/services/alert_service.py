"""Operator alerts posted to a Telegram chat."""

from typing import Optional

import httpx

from paperbot.logging_config import get_logger

logger = get_logger("alert_service")

LEVEL_EMOJI = {"INFO": "ℹ️", "WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🔥"}


def format_alert(level: str, message: str, context: Optional[dict] = None) -> str:
    text = f"{LEVEL_EMOJI.get(level, '📢')} *{level}* paperbot\n\n{message}"
    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        text += f"\n\n```\n{context_str}\n```"
    return text


class AlertService:
    """Sends alerts through the Telegram Bot API; a no-op when not configured."""

    BASE_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send(self, level: str, message: str, context: Optional[dict] = None) -> bool:
        """Returns True when Telegram accepted the alert."""
        if not self.configured:
            logger.warning(f"Alert not configured: {level} - {message}", extra={"context": context or {}})
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.BASE_URL.format(token=self.bot_token),
                    json={
                        "chat_id": self.chat_id,
                        "text": format_alert(level, message, context),
                        "parse_mode": "Markdown",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Failed to send alert: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"Alert rejected: {response.status_code} - {response.text[:200]}")
            return False
        return True

    async def critical(self, message: str, context: Optional[dict] = None) -> bool:
        return await self.send("CRITICAL", message, context)
