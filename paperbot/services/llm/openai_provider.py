from typing import Optional

import httpx

from paperbot.logging_config import get_logger
from paperbot.services.errors import BackendError
from paperbot.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.openai")


class OpenAIProvider(LLMProvider):
    """OpenAI API provider."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4o-mini",
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = "https://api.openai.com/v1/chat/completions"
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        """Generate response from OpenAI."""

        model = model or self.default_model

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            payload = {
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_completion_tokens": max_tokens,
            }
            logger.debug(f"OpenAI request: model={model}, prompt_length={len(prompt)}")

            response = await client.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )

        logger.debug(f"OpenAI response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"OpenAI error: {response.text}")
            raise BackendError(
                f"OpenAI API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        data = response.json()

        content = ""
        if data.get("choices") and len(data["choices"]) > 0:
            message = data["choices"][0].get("message", {})
            content = message.get("content") or ""
        logger.debug(f"OpenAI content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
