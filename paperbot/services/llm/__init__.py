from paperbot.config import Settings
from paperbot.services.llm.base import LLMProvider, LLMResponse
from paperbot.services.llm.gemini_provider import GeminiProvider
from paperbot.services.llm.openai_provider import OpenAIProvider


def build_provider(settings: Settings) -> LLMProvider:
    """Create the provider selected by ``settings.llm_provider``."""
    if settings.llm_provider == "openai":
        return OpenAIProvider(
            settings.openai_api_key,
            default_model=settings.openai_model,
            timeout_seconds=settings.http_timeout_seconds,
        )
    return GeminiProvider(
        settings.gemini_api_key,
        default_model=settings.gemini_model,
        timeout_seconds=settings.http_timeout_seconds,
    )


__all__ = ["LLMProvider", "LLMResponse", "GeminiProvider", "OpenAIProvider", "build_provider"]
