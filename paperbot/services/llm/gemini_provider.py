from typing import Optional

import httpx

from paperbot.logging_config import get_logger
from paperbot.services.errors import BackendError
from paperbot.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.gemini")


class GeminiProvider(LLMProvider):
    """Google Gemini provider over the Generative Language REST API."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(
        self,
        api_key: str,
        default_model: str = "gemini-2.0-flash-exp",
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        """Generate response from Gemini."""
        model = model or self.default_model
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        logger.debug(f"Gemini request: model={model}, prompt_length={len(prompt)}")

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(
                self.BASE_URL.format(model=model),
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=payload,
            )

        logger.debug(f"Gemini response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"Gemini error: {response.text}")
            raise BackendError(
                f"Gemini API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        data = response.json()
        content = ""
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            content = "".join(part.get("text", "") for part in parts)
        logger.debug(f"Gemini content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("modelVersion", model),
            usage=data.get("usageMetadata"),
        )
