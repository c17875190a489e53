from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    verify_token: str = ""

    whatsapp_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_version: str = "v21.0"
    whatsapp_api_base_url: str = "https://graph.facebook.com"

    llm_provider: Literal["gemini", "openai"] = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash-exp"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    elsevier_api_key: str = ""
    elsevier_api_url: str = "https://api.elsevier.com/content/serial/title"

    host: str = "0.0.0.0"
    port: int = 4500
    log_level: str = "INFO"
    debug: bool = False

    http_timeout_seconds: float = 30.0
    processed_message_ttl_seconds: float = 86400.0
    processed_message_max_entries: int = 10000

    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
