"""Pipeline validation logic.

Two kinds of checks live here:

- Connection checks run before every link change. They never raise; a
  refused edge comes back as a ``ConnectionResult`` carrying the reason.
- Configuration checks run once when a Pipeline is built from a seed
  node set and raise ``PipelineConfigError``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import networkx as nx

from funcflow.exceptions import FuncflowError
from funcflow.graph._helpers import build_link_graph
from funcflow.nodes import ENTRY, TERMINAL

if TYPE_CHECKING:
    from funcflow.graph.order import ExecutionOrder
    from funcflow.nodes import FunctionNode


class PipelineConfigError(FuncflowError):
    """Raised when a pipeline's seed configuration is invalid."""

    pass


# =============================================================================
# Connection checks
# =============================================================================


class RejectionReason(Enum):
    """Why a proposed link was refused.

    Values:
        SELF_LOOP: Source and target are the same node.
        UNKNOWN_NODE: Source or target is not in the pipeline, or the
            target selector could not be parsed.
        ORDER_VIOLATION: The execution order names a different successor.
        TARGET_OCCUPIED: The target already has an input from another
            node, or another node already feeds the final output.
        CYCLE: Following links from the target leads back to the source.
    """

    SELF_LOOP = "self_loop"
    UNKNOWN_NODE = "unknown_node"
    ORDER_VIOLATION = "order_violation"
    TARGET_OCCUPIED = "target_occupied"
    CYCLE = "cycle"


@dataclass(frozen=True)
class ConnectionResult:
    """Outcome of a connection check. Truthy when the link is allowed."""

    source_id: int
    target: int | None
    reason: RejectionReason | None = None

    @property
    def allowed(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.allowed


def parse_target(selector: str | int | None) -> int | None:
    """Turn a dropdown selector into a link target.

    ``""`` or None means no link, ``"-1"`` means the final output, and a
    positive integer string names a node.

    Raises:
        ValueError: If the selector is none of those
    """
    if selector is None:
        return None
    if isinstance(selector, int):
        value = selector
    else:
        text = selector.strip()
        if text == "":
            return None
        try:
            value = int(text)
        except ValueError:
            raise ValueError(f"Invalid link target: {selector!r}") from None
    if value == TERMINAL or value > 0:
        return value
    raise ValueError(f"Invalid link target: {selector!r}")


def check_connection(
    source_id: int,
    target: int,
    nodes: Mapping[int, FunctionNode],
    order: ExecutionOrder,
) -> ConnectionResult:
    """Decide whether ``source_id -> target`` may be linked.

    Checks run in order and the first failure is reported: self-loop,
    unknown node, execution order, occupied target, cycle.
    """
    if source_id == target:
        return ConnectionResult(source_id, target, RejectionReason.SELF_LOOP)

    if source_id not in nodes or (target != TERMINAL and target not in nodes):
        return ConnectionResult(source_id, target, RejectionReason.UNKNOWN_NODE)

    if not order.permits(source_id, target):
        return ConnectionResult(source_id, target, RejectionReason.ORDER_VIOLATION)

    if _target_occupied(source_id, target, nodes):
        return ConnectionResult(source_id, target, RejectionReason.TARGET_OCCUPIED)

    if _creates_cycle(source_id, target, nodes):
        return ConnectionResult(source_id, target, RejectionReason.CYCLE)

    return ConnectionResult(source_id, target)


def can_connect(
    source_id: int,
    target: int,
    nodes: Mapping[int, FunctionNode],
    order: ExecutionOrder,
) -> bool:
    """Boolean view of ``check_connection``."""
    return check_connection(source_id, target, nodes, order).allowed


def _target_occupied(
    source_id: int, target: int, nodes: Mapping[int, FunctionNode]
) -> bool:
    if target == TERMINAL:
        return any(
            n.is_terminal for n in nodes.values() if n.id != source_id
        )
    prev = nodes[target].prev_link
    return prev is not None and prev != source_id


def _creates_cycle(
    source_id: int, target: int, nodes: Mapping[int, FunctionNode]
) -> bool:
    """Walk next_link from the target; revisiting any id is a cycle."""
    visited = {source_id}
    current: int | None = target
    while current is not None and current > 0:
        if current in visited:
            return True
        visited.add(current)
        node = nodes.get(current)
        if node is None:
            break
        current = node.next_link
    return False


# =============================================================================
# Configuration checks
# =============================================================================


def validate_pipeline(nodes: Iterable[FunctionNode], order: ExecutionOrder) -> None:
    """Run all build-time validations on a seed node set.

    Invalid equations are not configuration errors; they are stored on
    the node and surface through the pipeline output.

    Raises:
        PipelineConfigError: On the first violated rule
    """
    nodes = list(nodes)
    _validate_ids(nodes)
    by_id = {n.id: n for n in nodes}
    _validate_single_entry(nodes)
    _validate_single_terminal(nodes)
    _validate_link_targets(by_id)
    _validate_links_consistent(by_id)
    _validate_acyclic(nodes)
    _validate_order(by_id, order)


def _validate_ids(nodes: list[FunctionNode]) -> None:
    """Ids must be positive and unique."""
    for n in nodes:
        if not isinstance(n.id, int) or n.id <= 0:
            raise PipelineConfigError(
                f"Invalid node id: {n.id!r}\n\n"
                f"  -> Node ids must be positive integers\n\n"
                f"How to fix:\n"
                f"  Number nodes from 1; 0 and -1 are reserved link sentinels"
            )
    dupes = sorted(i for i, count in Counter(n.id for n in nodes).items() if count > 1)
    if dupes:
        raise PipelineConfigError(
            f"Duplicate node ids: {dupes}\n\n"
            f"  -> Each node id must be unique within the pipeline"
        )


def _validate_single_entry(nodes: list[FunctionNode]) -> None:
    entries = [n.id for n in nodes if n.prev_link == ENTRY]
    if len(entries) > 1:
        raise PipelineConfigError(
            f"Multiple entry nodes: {entries}\n\n"
            f"  -> Only one node may be fed by the initial value\n\n"
            f"How to fix:\n"
            f"  Clear prev_link on all but one of them"
        )


def _validate_single_terminal(nodes: list[FunctionNode]) -> None:
    terminals = [n.id for n in nodes if n.next_link == TERMINAL]
    if len(terminals) > 1:
        raise PipelineConfigError(
            f"Multiple terminal nodes: {terminals}\n\n"
            f"  -> Only one node may feed the final output\n\n"
            f"How to fix:\n"
            f"  Clear next_link on all but one of them"
        )


def _validate_link_targets(by_id: dict[int, FunctionNode]) -> None:
    """Links must name existing nodes or the correct sentinel."""
    for n in by_id.values():
        if n.next_link is not None and n.next_link != TERMINAL and n.next_link not in by_id:
            raise PipelineConfigError(
                f"Node {n.id} links to unknown node {n.next_link}\n\n"
                f"  -> Available nodes: {sorted(by_id)}"
            )
        if n.prev_link is not None and n.prev_link != ENTRY and n.prev_link not in by_id:
            raise PipelineConfigError(
                f"Node {n.id} is fed by unknown node {n.prev_link}\n\n"
                f"  -> Available nodes: {sorted(by_id)}"
            )


def _validate_links_consistent(by_id: dict[int, FunctionNode]) -> None:
    """Both ends of every edge must agree."""
    for n in by_id.values():
        target = n.next_node_id
        if target is not None and by_id[target].prev_link != n.id:
            raise PipelineConfigError(
                f"Inconsistent link {n.id} -> {target}\n\n"
                f"  -> Node {n.id} has next_link={target}\n"
                f"  -> Node {target} has prev_link={by_id[target].prev_link}\n\n"
                f"How to fix:\n"
                f"  Set node {target}'s prev_link to {n.id}"
            )
        if n.prev_link is not None and n.prev_link != ENTRY:
            upstream = by_id[n.prev_link]
            if upstream.next_link != n.id:
                raise PipelineConfigError(
                    f"Inconsistent link {upstream.id} -> {n.id}\n\n"
                    f"  -> Node {n.id} has prev_link={upstream.id}\n"
                    f"  -> Node {upstream.id} has next_link={upstream.next_link}\n\n"
                    f"How to fix:\n"
                    f"  Set node {upstream.id}'s next_link to {n.id}"
                )


def _validate_acyclic(nodes: list[FunctionNode]) -> None:
    g = build_link_graph(nodes)
    if nx.is_directed_acyclic_graph(g):
        return
    cycle = [u for u, _ in nx.find_cycle(g)]
    path = " -> ".join(str(i) for i in [*cycle, cycle[0]])
    raise PipelineConfigError(
        f"Links form a cycle: {path}\n\n"
        f"  -> A pipeline must run from the initial value to the final output"
    )


def _validate_order(by_id: dict[int, FunctionNode], order: ExecutionOrder) -> None:
    """Order entries may only name nodes in the pipeline."""
    for source, target in order.successors.items():
        if source not in by_id:
            raise PipelineConfigError(
                f"Execution order names unknown node {source}\n\n"
                f"  -> Available nodes: {sorted(by_id)}"
            )
        if target != TERMINAL and target not in by_id:
            raise PipelineConfigError(
                f"Execution order lets node {source} link to unknown node {target}\n\n"
                f"  -> Available nodes: {sorted(by_id)}"
            )
