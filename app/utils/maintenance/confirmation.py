"""
Typed-phrase confirmation gate for destructive maintenance scripts.

The operator has to type three phrases in order. ``advance`` is a pure
transition function; the destructive work only runs once the machine reaches
``CONFIRMED``.
"""

from enum import Enum
from typing import Callable, Sequence

from app.constants.constants import DELETE_CONFIRMATION_PHRASES


class ConfirmationState(str, Enum):
    AWAITING_PHRASE_1 = "awaiting_phrase_1"
    AWAITING_PHRASE_2 = "awaiting_phrase_2"
    AWAITING_FINAL = "awaiting_final"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ConfirmationState.CONFIRMED, ConfirmationState.CANCELLED)


_AWAITING = (
    ConfirmationState.AWAITING_PHRASE_1,
    ConfirmationState.AWAITING_PHRASE_2,
    ConfirmationState.AWAITING_FINAL,
)
_NEXT = {
    ConfirmationState.AWAITING_PHRASE_1: ConfirmationState.AWAITING_PHRASE_2,
    ConfirmationState.AWAITING_PHRASE_2: ConfirmationState.AWAITING_FINAL,
    ConfirmationState.AWAITING_FINAL: ConfirmationState.CONFIRMED,
}

PROMPTS = {
    ConfirmationState.AWAITING_PHRASE_1: 'Type "{phrase}" to confirm: ',
    ConfirmationState.AWAITING_PHRASE_2: 'Are you absolutely sure? Type "{phrase}" to continue: ',
    ConfirmationState.AWAITING_FINAL: 'Final confirmation. Type "{phrase}" to delete everything: ',
}


def expected_phrase(state: ConfirmationState, phrases: Sequence[str] = DELETE_CONFIRMATION_PHRASES) -> str:
    return phrases[_AWAITING.index(state)]


def advance(
    state: ConfirmationState,
    text: str,
    phrases: Sequence[str] = DELETE_CONFIRMATION_PHRASES,
) -> ConfirmationState:
    """Return the next state for one line of operator input."""
    if state.is_terminal:
        return state
    if (text or "").strip() != expected_phrase(state, phrases):
        return ConfirmationState.CANCELLED
    return _NEXT[state]


def run_confirmation(
    prompt: Callable[[str], str] = input,
    phrases: Sequence[str] = DELETE_CONFIRMATION_PHRASES,
) -> ConfirmationState:
    """Prompt until the machine reaches a terminal state. EOF counts as cancellation."""
    state = ConfirmationState.AWAITING_PHRASE_1
    while not state.is_terminal:
        message = PROMPTS[state].format(phrase=expected_phrase(state, phrases))
        try:
            answer = prompt(message)
        except EOFError:
            return ConfirmationState.CANCELLED
        state = advance(state, answer, phrases)
    return state
