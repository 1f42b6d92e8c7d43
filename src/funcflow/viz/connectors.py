"""Connection projection: pipeline links to drawable connectors.

Anchor points come from the presentation layer through an
``AnchorLookup``. A lookup may not know a point yet (layout still in
progress); that connector is skipped for this pass and everything else
is still drawn.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional, Union

from funcflow.config import ALIGNMENT_THRESHOLD, CURVE_CURVATURE
from funcflow.nodes import ENTRY, TERMINAL
from funcflow.viz.geometry import ConnectorPath, Point, PointLike, as_point, build_path

if TYPE_CHECKING:
    from funcflow.graph.core import Pipeline

logger = logging.getLogger(__name__)

INITIAL = "initial"
FINAL = "final"

Anchor = Union[int, str]
Side = Literal["input", "output"]
AnchorLookup = Callable[[Anchor, Side], Optional[PointLike]]


@dataclass(frozen=True)
class Connection:
    """One connector to draw.

    Attributes:
        source: Node id, or INITIAL for the initial value
        target: Node id, or FINAL for the final output
        start: Output anchor of the source
        end: Input anchor of the target
        is_terminal: True for the initial-value and final-output connectors
    """

    source: Anchor
    target: Anchor
    start: Point
    end: Point
    is_terminal: bool = False


@dataclass(frozen=True)
class AnchorBox:
    """Bounding box of an on-screen element.

    The input anchor sits at the middle of the left edge, the output
    anchor at the middle of the right edge.
    """

    x: float  # Left edge
    y: float  # Top edge
    width: float
    height: float

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def input_point(self) -> Point:
        return Point(self.x, self.center_y)

    @property
    def output_point(self) -> Point:
        return Point(self.x + self.width, self.center_y)


def box_lookup(boxes: Mapping[Anchor, AnchorBox]) -> AnchorLookup:
    """AnchorLookup backed by a fixed set of element boxes."""

    def lookup(anchor: Anchor, side: Side) -> Point | None:
        box = boxes.get(anchor)
        if box is None:
            return None
        return box.input_point if side == "input" else box.output_point

    return lookup


def row_layout(
    pipeline: Pipeline,
    *,
    width: float = 250.0,
    height: float = 160.0,
    gap: float = 128.0,
) -> dict[Anchor, AnchorBox]:
    """Boxes for the initial value, every node in seed order, and the final output, in one row."""
    anchors: list[Anchor] = [INITIAL, *pipeline.node_ids, FINAL]
    return {
        anchor: AnchorBox(i * (width + gap), 0.0, width, height)
        for i, anchor in enumerate(anchors)
    }


def _resolve(lookup: AnchorLookup, anchor: Anchor, side: Side) -> Point | None:
    try:
        point = lookup(anchor, side)
    except LookupError:
        point = None
    return None if point is None else as_point(point)


def build_connections(pipeline: Pipeline, lookup: AnchorLookup) -> list[Connection]:
    """Connectors for every current link, plus the entry and final-output anchors.

    A link whose endpoints the lookup cannot resolve is left out.
    """
    connections: list[Connection] = []
    for source_id, target_id in pipeline.edges():
        source: Anchor = INITIAL if source_id == ENTRY else source_id
        target: Anchor = FINAL if target_id == TERMINAL else target_id
        is_terminal = source_id == ENTRY or target_id == TERMINAL

        start = _resolve(lookup, source, "output")
        end = _resolve(lookup, target, "input")
        if start is None or end is None:
            logger.debug("Skipping connector %s -> %s: anchor not available", source, target)
            continue
        connections.append(Connection(source, target, start, end, is_terminal))
    return connections


def render_paths(
    pipeline: Pipeline,
    lookup: AnchorLookup,
    *,
    alignment_threshold: float = ALIGNMENT_THRESHOLD,
    curvature: float = CURVE_CURVATURE,
) -> list[tuple[Connection, ConnectorPath]]:
    """Each connection paired with the path to draw for it."""
    return [
        (
            conn,
            build_path(
                conn.start,
                conn.end,
                conn.is_terminal,
                alignment_threshold=alignment_threshold,
                curvature=curvature,
            ),
        )
        for conn in build_connections(pipeline, lookup)
    ]
