"""Funcflow - wire single-variable functions into a pipeline and fold a value through it."""

from funcflow.config import PipelineConfig, load_config
from funcflow.events import (
    BaseEvent,
    EquationChangedEvent,
    Event,
    EventDispatcher,
    EventProcessor,
    LinkChangedEvent,
    LinkRejectedEvent,
    NodeEvaluatedEvent,
    OutputComputedEvent,
    OutputStatus,
    TypedEventProcessor,
)
from funcflow.events.rich_trace import RichTraceProcessor
from funcflow.exceptions import (
    EvaluationError,
    ExpressionError,
    ExpressionSyntaxError,
    FuncflowError,
    UnknownNodeError,
)
from funcflow.expression import ValidationResult, evaluate, evaluate_strict, validate
from funcflow.graph import (
    ConnectionResult,
    ExecutionOrder,
    Pipeline,
    PipelineConfigError,
    PipelineResult,
    RejectionReason,
    can_connect,
    check_connection,
)
from funcflow.nodes import ENTRY, TERMINAL, FunctionNode, function_node
from funcflow.viz import Point, build_connections, build_path, render_paths, to_mermaid

__all__ = [
    # Expressions
    "evaluate",
    "evaluate_strict",
    "validate",
    "ValidationResult",
    # Nodes
    "FunctionNode",
    "function_node",
    "ENTRY",
    "TERMINAL",
    # Pipeline
    "Pipeline",
    "PipelineResult",
    "ExecutionOrder",
    "ConnectionResult",
    "RejectionReason",
    "can_connect",
    "check_connection",
    # Config
    "PipelineConfig",
    "load_config",
    # Drawing
    "Point",
    "build_path",
    "build_connections",
    "render_paths",
    "to_mermaid",
    # Errors
    "FuncflowError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "EvaluationError",
    "UnknownNodeError",
    "PipelineConfigError",
    # Events
    "BaseEvent",
    "Event",
    "EventDispatcher",
    "EventProcessor",
    "TypedEventProcessor",
    "EquationChangedEvent",
    "LinkChangedEvent",
    "LinkRejectedEvent",
    "NodeEvaluatedEvent",
    "OutputComputedEvent",
    "OutputStatus",
    "RichTraceProcessor",
]
