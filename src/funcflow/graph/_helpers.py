"""Shared helper functions for pipeline analysis.

Used by both core.py and validation.py to avoid duplication.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from funcflow.nodes import FunctionNode


def build_link_graph(nodes: Iterable[FunctionNode]) -> nx.DiGraph:
    """Project next_link edges between real nodes onto a DiGraph.

    Sentinel links (ENTRY / TERMINAL) are kept as node attributes rather
    than edges, so the graph only holds node-to-node connections.
    """
    g = nx.DiGraph()
    nodes = list(nodes)
    for n in nodes:
        g.add_node(
            n.id,
            equation=n.equation,
            error=n.equation_error,
            is_entry=n.is_entry,
            is_terminal=n.is_terminal,
        )
    for n in nodes:
        target = n.next_node_id
        if target is not None:
            g.add_edge(n.id, target)
    return g


def walk_from(start: int | None, nodes: dict[int, FunctionNode]) -> Iterable[FunctionNode]:
    """Yield nodes following next_link from ``start``.

    Stops at a missing node, a sentinel, or the first repeated id.
    """
    seen: set[int] = set()
    current = start
    while current is not None and current > 0 and current not in seen:
        node = nodes.get(current)
        if node is None:
            return
        seen.add(current)
        yield node
        current = node.next_link
