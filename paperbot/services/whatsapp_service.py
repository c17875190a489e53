from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx

from paperbot.logging_config import get_logger
from paperbot.services.errors import DeliveryError, InvalidInput

logger = get_logger("whatsapp_service")

MAX_MESSAGE_LENGTH = 4096
MAX_BUTTONS = 3
MAX_BUTTON_TITLE_LENGTH = 20


@dataclass(frozen=True)
class Choice:
    id: str
    title: str


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split text into consecutive chunks of at most ``limit`` characters."""
    if limit < 1:
        raise ValueError("limit must be positive")
    return [text[i : i + limit] for i in range(0, len(text), limit)]


class WhatsAppService:
    """Service for sending messages through the WhatsApp Cloud API."""

    BASE_URL = "{base}/{version}/{phone_number_id}/messages"

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v21.0",
        base_url: str = "https://graph.facebook.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.url = self.BASE_URL.format(
            base=base_url.rstrip("/"), version=api_version, phone_number_id=phone_number_id
        )
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, recipient: str, payload: dict) -> dict:
        body = {"messaging_product": "whatsapp", "to": recipient, **payload}
        try:
            response = await self._client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp API transport error: {e}", extra={"context": {"to": recipient}})
            raise DeliveryError(f"WhatsApp API transport error: {e}") from e

        if not response.is_success:
            logger.error(
                "WhatsApp API error",
                extra={
                    "context": {
                        "to": recipient,
                        "status": response.status_code,
                        "body": response.text[:200],
                    }
                },
            )
            raise DeliveryError(
                f"WhatsApp API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        logger.debug(f"WhatsApp API response: {data}")
        return data

    async def send_text(self, recipient: str, text: str) -> int:
        """Send text to a user, split into platform-sized chunks. Returns chunk count."""
        chunks = split_message(text)
        for index, chunk in enumerate(chunks):
            await self._post(recipient, {"type": "text", "text": {"body": chunk}})
            logger.debug(f"Sent chunk {index + 1}/{len(chunks)} to {recipient}")
        logger.info(
            "Text delivered",
            extra={"context": {"to": recipient, "chunks": len(chunks), "length": len(text)}},
        )
        return len(chunks)

    async def send_choices(self, recipient: str, prompt: str, choices: Sequence[Choice]) -> dict:
        """Send one interactive message with reply buttons."""
        if not choices:
            raise InvalidInput("At least one choice is required")
        if len(choices) > MAX_BUTTONS:
            raise InvalidInput(f"At most {MAX_BUTTONS} choices are supported, got {len(choices)}")

        buttons = [
            {
                "type": "reply",
                "reply": {"id": choice.id, "title": choice.title[:MAX_BUTTON_TITLE_LENGTH]},
            }
            for choice in choices
        ]
        data = await self._post(
            recipient,
            {
                "type": "interactive",
                "interactive": {
                    "type": "button",
                    "body": {"text": prompt},
                    "action": {"buttons": buttons},
                },
            },
        )
        logger.info("Choices delivered", extra={"context": {"to": recipient, "choices": len(buttons)}})
        return data
