"""Graph package - pipeline structure, connection rules and execution."""

from funcflow.graph.order import ExecutionOrder
from funcflow.graph.validation import (
    ConnectionResult,
    PipelineConfigError,
    RejectionReason,
    can_connect,
    check_connection,
    parse_target,
    validate_pipeline,
)
from funcflow.graph.core import EvaluationStep, LinkOption, Pipeline, PipelineResult

__all__ = [
    "ConnectionResult",
    "EvaluationStep",
    "ExecutionOrder",
    "LinkOption",
    "Pipeline",
    "PipelineConfigError",
    "PipelineResult",
    "RejectionReason",
    "can_connect",
    "check_connection",
    "parse_target",
    "validate_pipeline",
]
