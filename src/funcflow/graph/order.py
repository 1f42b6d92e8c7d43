"""Fixed execution order - the one legal successor for each node id."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from funcflow.nodes import TERMINAL


class ExecutionOrder:
    """Constraint table mapping node id -> the single id it may link to.

    A value of TERMINAL means the node may only feed the final output.
    The table is configuration: swapping it changes the legal topology
    without touching any validation code.

    Example:
        >>> order = ExecutionOrder({1: 2, 2: TERMINAL})
        >>> order.permits(1, 2), order.permits(1, TERMINAL)
        (True, False)
        >>> order.chain(1)
        [1, 2]
    """

    def __init__(self, successors: Mapping[Any, Any]) -> None:
        # TOML and JSON only have string keys
        self._successors = MappingProxyType(
            {int(k): int(v) for k, v in successors.items()}
        )

    @property
    def successors(self) -> Mapping[int, int]:
        return self._successors

    def allowed_next(self, node_id: int) -> int | None:
        """The permitted successor of ``node_id``, or None if it has none."""
        return self._successors.get(node_id)

    def permits(self, source_id: int, target: int) -> bool:
        return self._successors.get(source_id) == target

    def chain(self, start: int) -> list[int]:
        """Node ids in execution order from ``start`` up to TERMINAL."""
        result: list[int] = []
        current: int | None = start
        while current is not None and current != TERMINAL and current not in result:
            result.append(current)
            current = self._successors.get(current)
        return result

    def __iter__(self) -> Iterator[int]:
        return iter(self._successors)

    def __len__(self) -> int:
        return len(self._successors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExecutionOrder):
            return NotImplemented
        return dict(self._successors) == dict(other._successors)

    def __repr__(self) -> str:
        return f"ExecutionOrder({dict(self._successors)!r})"
