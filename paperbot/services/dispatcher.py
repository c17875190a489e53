"""Conversation dispatcher: routes inbound events by per-user state."""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from paperbot.logging_config import LoggerAdapter, get_logger
from paperbot.schemas.webhook import InboundMessage
from paperbot.services.alert_service import AlertService
from paperbot.services.conversation_store import ConversationStore
from paperbot.services.errors import BackendError, DeliveryError, InvalidInput
from paperbot.services.journal_service import JournalRecord, format_journal_results
from paperbot.services.state_machine import ConversationState, await_journal_query, await_topic, complete
from paperbot.services.whatsapp_service import Choice, WhatsAppService

logger = get_logger("dispatcher")

TitleGenerator = Callable[[str], Awaitable[str]]
JournalSearcher = Callable[[str], Awaitable[List[JournalRecord]]]

GET_TOPICS = "get_topics"
SEARCH_JOURNALS = "search_journals"

GREETING_TEXT = "Hello! Choose an option:"
GREETING_CHOICES = (
    Choice(id=GET_TOPICS, title="Topics"),
    Choice(id=SEARCH_JOURNALS, title="Search Journals"),
)
TOPIC_PROMPT = "Please enter the topic for your research paper:"
JOURNAL_PROMPT = "Please enter the journal title to search for:"
TITLE_RETRY_MESSAGE = "Error processing your message. Please try again."
JOURNAL_RETRY_MESSAGE = "Error searching journals. Please try again."


class DispatchAction(str, Enum):
    DUPLICATE = "duplicate"
    GREETED = "greeted"
    PROMPTED = "prompted"
    REPLIED = "replied"
    FAILED = "failed"
    DELIVERY_FAILED = "delivery_failed"


@dataclass
class DispatchResult:
    handled: bool
    action: DispatchAction
    state: Optional[ConversationState] = None


class ConversationDispatcher:
    """Owns the conversation flow for every user.

    Each user's events are processed one at a time under the store's per-user
    lock; different users run concurrently. Upstream and delivery failures end
    in a single retry message and the user is always returned to
    ``NO_PENDING`` after a pending request.
    """

    def __init__(
        self,
        store: ConversationStore,
        messenger: WhatsAppService,
        title_generator: TitleGenerator,
        journal_searcher: JournalSearcher,
        alerts: Optional[AlertService] = None,
    ):
        self.store = store
        self.messenger = messenger
        self.title_generator = title_generator
        self.journal_searcher = journal_searcher
        self.alerts = alerts

    async def dispatch(self, message: InboundMessage) -> DispatchResult:
        if not self.store.mark_processed(message.message_id):
            logger.info(
                "Duplicate message_id",
                extra={"context": {"user": message.sender, "message_id": message.message_id}},
            )
            return DispatchResult(handled=False, action=DispatchAction.DUPLICATE)

        log = LoggerAdapter(logger, {"user": message.sender, "message_id": message.message_id})

        async with self.store.lock_for(message.sender):
            state = self.store.get_state(message.sender)
            log.info(f"Dispatching {'choice' if message.is_choice else 'text'} in state {state.value}")

            if message.is_choice:
                action = await self._handle_choice(message, state, log)
            elif state == ConversationState.AWAITING_TOPIC:
                action = await self._fulfil(message, state, self.title_generator, TITLE_RETRY_MESSAGE, log)
            elif state == ConversationState.AWAITING_JOURNAL_QUERY:
                action = await self._fulfil(message, state, self._journal_reply, JOURNAL_RETRY_MESSAGE, log)
            else:
                action = await self._send_greeting(message.sender, log)

            return DispatchResult(handled=True, action=action, state=self.store.get_state(message.sender))

    async def _handle_choice(
        self, message: InboundMessage, state: ConversationState, log: LoggerAdapter
    ) -> DispatchAction:
        # A selection while awaiting input cancels the pending request.
        if message.choice_id == GET_TOPICS:
            new_state, prompt = await_topic(state), TOPIC_PROMPT
        elif message.choice_id == SEARCH_JOURNALS:
            new_state, prompt = await_journal_query(state), JOURNAL_PROMPT
        else:
            log.warning(f"Unknown choice id: {message.choice_id}")
            self.store.reset(message.sender)
            return await self._send_greeting(message.sender, log)

        if state != ConversationState.NO_PENDING:
            log.info(f"Selection replaces pending request {state.value}")
        self.store.set_state(message.sender, new_state)

        try:
            await self.messenger.send_text(message.sender, prompt)
        except DeliveryError as e:
            log.error(f"Prompt delivery failed: {e.message}")
            self.store.reset(message.sender)
            return DispatchAction.DELIVERY_FAILED
        return DispatchAction.PROMPTED

    async def _fulfil(
        self,
        message: InboundMessage,
        state: ConversationState,
        produce: Callable[[str], Awaitable[str]],
        retry_message: str,
        log: LoggerAdapter,
    ) -> DispatchAction:
        try:
            try:
                reply = await produce(message.text)
            except (InvalidInput, BackendError) as e:
                log.warning(f"Request failed in state {state.value}: {e.message}")
                await self._send_retry(message.sender, retry_message, log)
                return DispatchAction.FAILED

            try:
                await self.messenger.send_text(message.sender, reply)
            except DeliveryError as e:
                log.error(f"Reply delivery failed: {e.message}")
                await self._send_retry(message.sender, retry_message, log)
                return DispatchAction.FAILED
            return DispatchAction.REPLIED
        finally:
            self.store.set_state(message.sender, complete(state))

    async def _journal_reply(self, query: str) -> str:
        records = await self.journal_searcher(query)
        return format_journal_results(query.strip(), records)

    async def _send_retry(self, recipient: str, retry_message: str, log: LoggerAdapter) -> None:
        try:
            await self.messenger.send_text(recipient, retry_message)
        except DeliveryError as e:
            log.error(f"Retry message delivery failed: {e.message}")
            if self.alerts is not None:
                await self.alerts.critical("Reply delivery failed", {"user": recipient, "error": e.message})

    async def _send_greeting(self, recipient: str, log: LoggerAdapter) -> DispatchAction:
        try:
            await self.messenger.send_choices(recipient, GREETING_TEXT, GREETING_CHOICES)
        except DeliveryError as e:
            log.error(f"Greeting delivery failed: {e.message}")
            return DispatchAction.DELIVERY_FAILED
        return DispatchAction.GREETED
