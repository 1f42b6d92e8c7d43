"""Connector geometry: smooth paths between two anchor points.

``build_path`` picks one of three shapes:

- a straight line for terminal connectors (initial value and final output),
- a single quadratic arc when the points are nearly level or nearly
  stacked, so the connector bows instead of kinking,
- otherwise a cubic S-curve whose tangents are horizontal at both ends.

Everything here is a pure function of its inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union

from funcflow.config import ALIGNMENT_THRESHOLD, CURVE_CURVATURE


@dataclass(frozen=True)
class Point:
    """Immutable 2D point in screen space (y grows downward).

    Example:
        >>> Point(1, 2) + Point(3, 4)
        Point(x=4, y=6)
    """

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


PointLike = Union[Point, tuple[float, float]]


def as_point(p: PointLike) -> Point:
    if isinstance(p, Point):
        return p
    x, y = p
    return Point(x, y)


class PathKind(Enum):
    LINE = "line"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"


@dataclass(frozen=True)
class ConnectorPath:
    """A drawable connector.

    Attributes:
        kind: Shape of the path
        start: First point (M command)
        end: Last point
        controls: Bezier control points (none for LINE, one for QUADRATIC,
            two for CUBIC)
    """

    kind: PathKind
    start: Point
    end: Point
    controls: tuple[Point, ...] = ()

    @property
    def points(self) -> tuple[Point, ...]:
        """Start, control points, end."""
        return (self.start, *self.controls, self.end)

    @property
    def is_straight(self) -> bool:
        """True when every control point lies on the start-end line."""
        d = self.end - self.start
        for c in self.controls:
            v = c - self.start
            if abs(d.x * v.y - d.y * v.x) > 1e-9:
                return False
            if d.x == 0 and d.y == 0 and (v.x != 0 or v.y != 0):
                return False
        return True

    def point_at(self, t: float) -> Point:
        """Point on the curve at parameter t in [0, 1] (Bernstein form)."""
        pts = self.points
        n = len(pts) - 1
        coeffs = [math.comb(n, i) * (1 - t) ** (n - i) * t**i for i in range(n + 1)]
        return Point(
            sum(c * p.x for c, p in zip(coeffs, pts)),
            sum(c * p.y for c, p in zip(coeffs, pts)),
        )

    def to_svg(self) -> str:
        """SVG path ``d`` attribute."""
        head = f"M {_fmt(self.start.x)} {_fmt(self.start.y)}"
        tail = f"{_fmt(self.end.x)} {_fmt(self.end.y)}"
        if self.kind is PathKind.LINE:
            return f"{head} L {tail}"
        ctrl = ", ".join(f"{_fmt(c.x)} {_fmt(c.y)}" for c in self.controls)
        cmd = "Q" if self.kind is PathKind.QUADRATIC else "C"
        return f"{head} {cmd} {ctrl}, {tail}"


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(round(value, 3))


def build_path(
    start: PointLike,
    end: PointLike,
    is_terminal: bool = False,
    *,
    alignment_threshold: float = ALIGNMENT_THRESHOLD,
    curvature: float = CURVE_CURVATURE,
) -> ConnectorPath:
    """Connector between two anchor points.

    Args:
        start: Output anchor of the upstream element
        end: Input anchor of the downstream element
        is_terminal: Draw a straight line (initial value / final output edges)
        alignment_threshold: |dy| below this counts as horizontal, |dx|
            below this as vertical
        curvature: Fraction of dx by which cubic control points are pushed
            out horizontally. 0 gives a straight line.

    Example:
        >>> build_path((0, 0), (100, 0)).to_svg()
        'M 0 0 Q 50 50, 100 0'
    """
    s, e = as_point(start), as_point(end)
    if is_terminal:
        return ConnectorPath(PathKind.LINE, s, e)

    dx = e.x - s.x
    dy = e.y - s.y
    is_horizontal = abs(dy) < alignment_threshold
    is_vertical = abs(dx) < alignment_threshold

    if is_horizontal:
        # Bow downward by half the span
        control = Point((s.x + e.x) / 2, s.y + abs(dx) / 2)
        return ConnectorPath(PathKind.QUADRATIC, s, e, (control,))
    if is_vertical:
        # Bow rightward by half the span
        control = Point(s.x + abs(dy) / 2, (s.y + e.y) / 2)
        return ConnectorPath(PathKind.QUADRATIC, s, e, (control,))

    offset_x = dx * curvature
    return ConnectorPath(
        PathKind.CUBIC,
        s,
        e,
        (Point(s.x + offset_x, s.y), Point(e.x - offset_x, e.y)),
    )
