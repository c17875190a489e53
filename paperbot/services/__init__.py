from paperbot.services.conversation_store import ConversationStore
from paperbot.services.dispatcher import ConversationDispatcher, DispatchAction, DispatchResult
from paperbot.services.errors import BackendError, DeliveryError, InvalidInput, RelayError
from paperbot.services.state_machine import (
    ConversationState,
    InvalidTransitionError,
    await_journal_query,
    await_topic,
    can_transition,
    complete,
    transition,
)
