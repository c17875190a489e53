from enum import Enum


class ConversationState(str, Enum):
    NO_PENDING = "no_pending"
    AWAITING_TOPIC = "awaiting_topic"
    AWAITING_JOURNAL_QUERY = "awaiting_journal_query"


VALID_TRANSITIONS = {
    ConversationState.NO_PENDING: [
        ConversationState.AWAITING_TOPIC,
        ConversationState.AWAITING_JOURNAL_QUERY,
    ],
    ConversationState.AWAITING_TOPIC: [
        ConversationState.NO_PENDING,
        ConversationState.AWAITING_TOPIC,
        ConversationState.AWAITING_JOURNAL_QUERY,
    ],
    ConversationState.AWAITING_JOURNAL_QUERY: [
        ConversationState.NO_PENDING,
        ConversationState.AWAITING_TOPIC,
        ConversationState.AWAITING_JOURNAL_QUERY,
    ],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: ConversationState, to_state: ConversationState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: ConversationState, to_state: ConversationState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: ConversationState, to_state: ConversationState) -> ConversationState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def await_topic(current_state: ConversationState) -> ConversationState:
    """User picked title generation; wait for the topic."""
    return transition(current_state, ConversationState.AWAITING_TOPIC)


def await_journal_query(current_state: ConversationState) -> ConversationState:
    """User picked journal search; wait for the query."""
    return transition(current_state, ConversationState.AWAITING_JOURNAL_QUERY)


def complete(current_state: ConversationState) -> ConversationState:
    """Pending request answered (or failed), back to resting state."""
    return transition(current_state, ConversationState.NO_PENDING)
