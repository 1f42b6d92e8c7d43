"""Event processor base classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from funcflow.events.types import (
        EquationChangedEvent,
        Event,
        LinkChangedEvent,
        LinkRejectedEvent,
        NodeEvaluatedEvent,
        OutputComputedEvent,
    )


# Mapping from event class name to handler method name.
_EVENT_METHOD_MAP: dict[str, str] = {
    "EquationChangedEvent": "on_equation_changed",
    "LinkChangedEvent": "on_link_changed",
    "LinkRejectedEvent": "on_link_rejected",
    "NodeEvaluatedEvent": "on_node_evaluated",
    "OutputComputedEvent": "on_output_computed",
}


class EventProcessor:
    """Base class for event consumers.

    Subclass and override ``on_event`` to receive all events,
    or use ``TypedEventProcessor`` for per-type dispatch.
    """

    def on_event(self, event: Event) -> None:
        """Called for every event. Override in subclasses."""

    def shutdown(self) -> None:
        """Called once when the pipeline is closed. Override to flush buffers."""


class TypedEventProcessor(EventProcessor):
    """Dispatches ``on_event`` to typed handler methods automatically.

    Override any of the ``on_*`` methods below to handle specific event types.
    Unhandled event types are silently ignored.
    """

    def on_event(self, event: Event) -> None:
        method_name = _EVENT_METHOD_MAP.get(type(event).__name__)
        if method_name is not None:
            method = getattr(self, method_name, None)
            if method is not None:
                method(event)

    def on_equation_changed(self, event: EquationChangedEvent) -> None: ...
    def on_link_changed(self, event: LinkChangedEvent) -> None: ...
    def on_link_rejected(self, event: LinkRejectedEvent) -> None: ...
    def on_node_evaluated(self, event: NodeEvaluatedEvent) -> None: ...
    def on_output_computed(self, event: OutputComputedEvent) -> None: ...
