from typing import Optional
from unittest.mock import AsyncMock, Mock

import pytest

from paperbot.services.conversation_store import ConversationStore
from paperbot.services.dispatcher import ConversationDispatcher
from paperbot.services.journal_service import JournalRecord


def make_envelope(
    sender: str = "15551234567",
    message_id: str = "wamid.1",
    text: Optional[str] = None,
    choice_id: Optional[str] = None,
) -> dict:
    """Build a WhatsApp Cloud webhook payload with a single message."""
    message = {"from": sender, "id": message_id, "timestamp": "1702000000"}
    if text is not None:
        message["type"] = "text"
        message["text"] = {"body": text}
    if choice_id is not None:
        message["type"] = "interactive"
        message["interactive"] = {"type": "button_reply", "button_reply": {"id": choice_id, "title": "Choice"}}
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"display_phone_number": "15550000000", "phone_number_id": "PHONE_ID"},
                            "messages": [message],
                        },
                    }
                ],
            }
        ],
    }


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def messenger():
    """Outbound messenger double recording every send."""
    mock = Mock()
    mock.send_text = AsyncMock(return_value=1)
    mock.send_choices = AsyncMock(return_value={})
    return mock


@pytest.fixture
def title_generator():
    return AsyncMock(return_value="1. First title\n\n2. Second title")


@pytest.fixture
def journal_searcher():
    return AsyncMock(
        return_value=[
            JournalRecord(title="Journal of Testing", cite_score=9.1, source_link="https://www.scopus.com/source/1"),
        ]
    )


@pytest.fixture
def alerts():
    mock = Mock()
    mock.critical = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def dispatcher(store, messenger, title_generator, journal_searcher, alerts):
    return ConversationDispatcher(
        store=store,
        messenger=messenger,
        title_generator=title_generator,
        journal_searcher=journal_searcher,
        alerts=alerts,
    )

