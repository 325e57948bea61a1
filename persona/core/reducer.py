"""
Reducer: Pure state transition functions.

Replay folds journaled events through a Reducer to rebuild personalities.
Handlers must be pure and deterministic (same input -> same output).
"""

from typing import Any, Callable, Dict

from .errors import InvalidTransitionError
from .events import Event
from .state import State

# Handler signature: (current_aggregate_state, event) -> new_aggregate_state
Handler = Callable[[Any, Event], Any]


class Reducer:
    """
    Registry of event handlers for state transitions.

    Usage:
        reducer = Reducer()
        reducer.register("PersonalityUpdated", on_personality_updated)
        new_state = reducer.apply(state, event)
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type] = handler

    def apply(self, state: State, event: Event) -> State:
        """
        Apply event to state using registered handler.

        Raises:
            InvalidTransitionError: If no handler registered for event type
        """
        if event.type not in self._handlers:
            raise InvalidTransitionError(f"No handler for event type: {event.type}")

        current = state.get_agg(event.aggregate_id)
        new_agg_state = self._handlers[event.type](current, event)
        return state.with_agg(event.aggregate_id, new_agg_state)
