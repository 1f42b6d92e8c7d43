"""Exceptions for the funcflow pipeline engine."""

from __future__ import annotations


class FuncflowError(Exception):
    """Base class for all funcflow errors."""


class ExpressionError(FuncflowError):
    """An equation could not be turned into a number.

    Attributes:
        expression: The text that failed
        message: Human-readable error message
    """

    def __init__(self, expression: str, message: str) -> None:
        self.expression = expression
        self.message = message
        super().__init__(message)


class ExpressionSyntaxError(ExpressionError):
    """Equation text is malformed (unexpected character or token)."""


class EvaluationError(ExpressionError):
    """Equation parsed but the arithmetic failed.

    Raised for division by zero, overflow, and any non-finite result.
    """


class UnknownNodeError(FuncflowError, KeyError):
    """A node id was referenced that is not in the pipeline.

    Attributes:
        node_id: The id that was looked up
        available: Ids that do exist
    """

    def __init__(self, node_id: int, available: list[int] | None = None) -> None:
        self.node_id = node_id
        self.available = sorted(available or [])
        self.message = self._default_message()
        super().__init__(self.message)

    def _default_message(self) -> str:
        msg = f"No function node with id {self.node_id}"
        if self.available:
            msg += f"\nAvailable ids: {', '.join(str(i) for i in self.available)}"
        return msg

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message
