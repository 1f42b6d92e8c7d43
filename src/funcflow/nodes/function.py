"""FunctionNode - one stage of a pipeline."""

from __future__ import annotations

import copy
from dataclasses import dataclass

from funcflow.expression import validate

# Link sentinels. ENTRY is only ever a prev_link, TERMINAL only a next_link.
ENTRY = 0
TERMINAL = -1


@dataclass
class FunctionNode:
    """A pipeline stage holding one equation in x.

    The ``id`` is fixed for the node's lifetime and doubles as its rank in
    the execution order. Everything else is overwritten in place as the
    user edits.

    Attributes:
        id: Positive, unique node id
        equation: Raw equation text as last entered (may be invalid)
        equation_error: Validation message for ``equation``, or None
        next_link: None, another node id, or TERMINAL
        prev_link: None, another node id, or ENTRY

    Example:
        >>> n = function_node(1, "x^2", next_link=2, prev_link=ENTRY)
        >>> n.is_entry, n.is_terminal, n.has_error
        (True, False, False)
    """

    id: int
    equation: str
    equation_error: str | None = None
    next_link: int | None = None
    prev_link: int | None = None

    @property
    def is_entry(self) -> bool:
        """Fed directly by the initial value."""
        return self.prev_link == ENTRY

    @property
    def is_terminal(self) -> bool:
        """Feeds the final output."""
        return self.next_link == TERMINAL

    @property
    def has_error(self) -> bool:
        return bool(self.equation_error)

    @property
    def next_node_id(self) -> int | None:
        """Downstream node id, ignoring the TERMINAL sentinel."""
        if self.next_link is not None and self.next_link > 0:
            return self.next_link
        return None

    def set_equation(self, equation: str) -> None:
        """Store new equation text together with its validation error."""
        self.equation = equation
        self.equation_error = validate(equation).error

    def copy(self) -> FunctionNode:
        """Detached copy, safe to hand to display code."""
        return copy.copy(self)


def function_node(
    id: int,
    equation: str,
    *,
    next_link: int | None = None,
    prev_link: int | None = None,
) -> FunctionNode:
    """Create a FunctionNode with ``equation_error`` filled in."""
    n = FunctionNode(id=id, equation=equation, next_link=next_link, prev_link=prev_link)
    n.set_equation(equation)
    return n
