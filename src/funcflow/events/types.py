"""Event types emitted by a Pipeline."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from funcflow.graph.validation import RejectionReason


class OutputStatus(Enum):
    """How a pipeline run ended.

    Values:
        COMPUTED: Walked from the entry node to the terminal node.
        INVALID_EQUATION: Some node has a validation error; output is 0.
        EVALUATION_FAILED: An equation could not be evaluated; output is 0.
        NO_ENTRY: No node is fed by the initial value.
        DANGLING: The chain stops before reaching the final output.
    """

    COMPUTED = "computed"
    INVALID_EQUATION = "invalid_equation"
    EVALUATION_FAILED = "evaluation_failed"
    NO_ENTRY = "no_entry"
    DANGLING = "dangling"

    @property
    def has_output(self) -> bool:
        """True when the run produced a value (computed or fail-safe 0)."""
        return self not in (OutputStatus.NO_ENTRY, OutputStatus.DANGLING)


def _generate_run_id() -> str:
    return uuid.uuid4().hex[:16]


def _now() -> float:
    return time.time()


@dataclass(frozen=True)
class BaseEvent:
    """Base class for all pipeline events.

    Attributes:
        run_id: Identifier shared by the events of one output computation.
            Empty for events raised by edits.
        timestamp: Unix timestamp when the event was created.
    """

    run_id: str = ""
    timestamp: float = field(default_factory=_now)


@dataclass(frozen=True)
class EquationChangedEvent(BaseEvent):
    """Emitted after a node's equation text is replaced.

    Attributes:
        node_id: The edited node.
        equation: The new text.
        error: Validation message, or None if the equation is valid.
    """

    node_id: int = 0
    equation: str = ""
    error: str | None = None


@dataclass(frozen=True)
class LinkChangedEvent(BaseEvent):
    """Emitted after a link is applied or cleared.

    Attributes:
        source_id: Node whose next_link changed.
        target: New next_link (None when cleared).
        previous: next_link before the change.
    """

    source_id: int = 0
    target: int | None = None
    previous: int | None = None


@dataclass(frozen=True)
class LinkRejectedEvent(BaseEvent):
    """Emitted when a proposed link is refused. State is unchanged.

    Attributes:
        source_id: Node the link would start from.
        target: Requested target, or None if the selector was unreadable.
        reason: Why the link was refused.
    """

    source_id: int = 0
    target: int | None = None
    reason: RejectionReason | None = None


@dataclass(frozen=True)
class NodeEvaluatedEvent(BaseEvent):
    """Emitted for each node applied during a run.

    Attributes:
        node_id: The node that was evaluated.
        equation: Its equation text.
        input_value: Running value fed in.
        output_value: Value produced.
    """

    node_id: int = 0
    equation: str = ""
    input_value: float = 0.0
    output_value: float = 0.0


@dataclass(frozen=True)
class OutputComputedEvent(BaseEvent):
    """Emitted at the end of every run.

    Attributes:
        initial_value: Value fed to the entry node.
        status: How the run ended.
        value: Output value, or None when no output was produced.
        error: Detail for failed runs.
    """

    initial_value: float = 0.0
    status: OutputStatus = OutputStatus.COMPUTED
    value: float | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        # Coerce string status values to OutputStatus enum
        if isinstance(self.status, str):
            object.__setattr__(self, "status", OutputStatus(self.status))


Event = Union[
    EquationChangedEvent,
    LinkChangedEvent,
    LinkRejectedEvent,
    NodeEvaluatedEvent,
    OutputComputedEvent,
]
