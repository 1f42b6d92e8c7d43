"""Event system for observing pipeline edits and runs."""

from funcflow.events.dispatcher import EventDispatcher
from funcflow.events.processor import EventProcessor, TypedEventProcessor
from funcflow.events.types import (
    BaseEvent,
    EquationChangedEvent,
    Event,
    LinkChangedEvent,
    LinkRejectedEvent,
    NodeEvaluatedEvent,
    OutputComputedEvent,
    OutputStatus,
)

__all__ = [
    # Event types
    "BaseEvent",
    "Event",
    "EquationChangedEvent",
    "LinkChangedEvent",
    "LinkRejectedEvent",
    "NodeEvaluatedEvent",
    "OutputComputedEvent",
    "OutputStatus",
    # Processor interfaces
    "EventProcessor",
    "TypedEventProcessor",
    # Dispatcher
    "EventDispatcher",
]
