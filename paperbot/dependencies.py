"""Shared FastAPI dependencies wiring the relay's collaborators."""

from functools import lru_cache, partial

from fastapi import Depends

from paperbot.config import get_settings
from paperbot.services.alert_service import AlertService
from paperbot.services.conversation_store import ConversationStore
from paperbot.services.dispatcher import ConversationDispatcher
from paperbot.services.journal_service import JournalSearchClient
from paperbot.services.llm import LLMProvider, build_provider
from paperbot.services.title_service import generate_titles
from paperbot.services.whatsapp_service import WhatsAppService


@lru_cache
def get_store() -> ConversationStore:
    settings = get_settings()
    return ConversationStore(
        ttl_seconds=settings.processed_message_ttl_seconds,
        max_entries=settings.processed_message_max_entries,
    )


@lru_cache
def get_messenger() -> WhatsAppService:
    settings = get_settings()
    return WhatsAppService(
        settings.whatsapp_token,
        settings.whatsapp_phone_number_id,
        api_version=settings.whatsapp_api_version,
        base_url=settings.whatsapp_api_base_url,
        timeout=settings.http_timeout_seconds,
    )


@lru_cache
def get_alerts() -> AlertService:
    settings = get_settings()
    return AlertService(settings.alert_bot_token, settings.alert_chat_id)


@lru_cache
def get_llm_provider() -> LLMProvider:
    return build_provider(get_settings())


@lru_cache
def get_journal_client() -> JournalSearchClient:
    settings = get_settings()
    return JournalSearchClient(
        settings.elsevier_api_key,
        api_url=settings.elsevier_api_url,
        timeout_seconds=settings.http_timeout_seconds,
    )


def get_dispatcher(
    store: ConversationStore = Depends(get_store),
    messenger: WhatsAppService = Depends(get_messenger),
    provider: LLMProvider = Depends(get_llm_provider),
    journals: JournalSearchClient = Depends(get_journal_client),
    alerts: AlertService = Depends(get_alerts),
) -> ConversationDispatcher:
    return ConversationDispatcher(
        store=store,
        messenger=messenger,
        title_generator=partial(generate_titles, provider=provider),
        journal_searcher=journals.search,
        alerts=alerts,
    )
