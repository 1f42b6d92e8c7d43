"""Tests for connector path geometry."""

import pytest

from funcflow.viz.geometry import ConnectorPath, PathKind, Point, as_point, build_path


class TestPoint:
    def test_arithmetic(self):
        assert Point(1, 2) + Point(3, 4) == Point(4, 6)
        assert Point(5, 5) - Point(2, 1) == Point(3, 4)

    def test_as_point(self):
        p = Point(1, 2)
        assert as_point(p) is p
        assert as_point((3, 4)) == Point(3, 4)
        assert as_point((3, 4)).as_tuple() == (3, 4)


class TestTerminalConnectors:
    def test_terminal_is_straight_line(self):
        path = build_path((0, 0), (200, 100), is_terminal=True)
        assert path.kind is PathKind.LINE
        assert path.controls == ()
        assert path.to_svg() == "M 0 0 L 200 100"

    def test_terminal_same_point_is_zero_length(self):
        path = build_path((5, 5), (5, 5), True)
        assert path.kind is PathKind.LINE
        assert path.start == path.end
        assert path.to_svg() == "M 5 5 L 5 5"

    def test_terminal_ignores_alignment(self):
        assert build_path((0, 0), (100, 0), True).kind is PathKind.LINE


class TestAlignedConnectors:
    """Nearly level or stacked endpoints get a single quadratic arc."""

    def test_horizontal_bows_down(self):
        path = build_path((0, 0), (100, 0))
        assert path.kind is PathKind.QUADRATIC
        assert path.controls == (Point(50, 50),)
        assert path.to_svg() == "M 0 0 Q 50 50, 100 0"

    def test_backward_horizontal_still_bows_down(self):
        path = build_path((100, 0), (0, 0))
        assert path.controls == (Point(50, 50),)

    def test_near_horizontal_within_threshold(self):
        path = build_path((0, 0), (100, 9.9))
        assert path.kind is PathKind.QUADRATIC
        assert path.controls == (Point(50, 50),)

    def test_threshold_is_exclusive(self):
        assert build_path((0, 0), (100, 10)).kind is PathKind.CUBIC

    def test_vertical_bows_right(self):
        path = build_path((0, 0), (0, 100))
        assert path.kind is PathKind.QUADRATIC
        assert path.to_svg() == "M 0 0 Q 50 50, 0 100"

    def test_custom_threshold(self):
        assert build_path((0, 0), (100, 30), alignment_threshold=50).kind is PathKind.QUADRATIC

    def test_degenerate_same_point(self):
        path = build_path((5, 5), (5, 5))
        assert path.kind is PathKind.QUADRATIC
        assert path.controls == (Point(5, 5),)
        assert path.is_straight
        assert path.point_at(0.5) == Point(5, 5)

    def test_fractional_coordinates(self):
        assert build_path((0, 0), (101, 0)).to_svg() == "M 0 0 Q 50.5 50.5, 101 0"


class TestCubicConnectors:
    def test_s_curve(self):
        path = build_path((0, 0), (200, 100))
        assert path.kind is PathKind.CUBIC
        assert path.controls == (Point(100, 0), Point(100, 100))
        assert path.to_svg() == "M 0 0 C 100 0, 100 100, 200 100"

    def test_tangents_are_horizontal(self):
        path = build_path((10, 20), (300, 250))
        first, second = path.controls
        assert first.y == path.start.y
        assert second.y == path.end.y

    def test_backward_curve(self):
        path = build_path((200, 100), (0, 0))
        assert path.controls == (Point(100, 100), Point(100, 0))

    def test_midpoint(self):
        path = build_path((0, 0), (200, 100))
        assert path.point_at(0.5) == Point(100, 50)

    def test_endpoints(self):
        path = build_path((0, 0), (200, 100))
        assert path.point_at(0) == Point(0, 0)
        assert path.point_at(1) == Point(200, 100)

    def test_zero_curvature_is_straight(self):
        path = build_path((0, 0), (200, 100), curvature=0)
        assert path.kind is PathKind.CUBIC
        assert path.is_straight

    def test_default_curvature_is_not_straight(self):
        assert not build_path((0, 0), (200, 100)).is_straight

    @pytest.mark.parametrize("curvature", [0.25, 0.5, 1.0])
    def test_curvature_scales_offset(self, curvature):
        path = build_path((0, 0), (200, 100), curvature=curvature)
        assert path.controls[0].x == 200 * curvature


class TestConnectorPath:
    def test_points(self):
        path = ConnectorPath(PathKind.LINE, Point(0, 0), Point(1, 1))
        assert path.points == (Point(0, 0), Point(1, 1))
        assert path.point_at(0.5) == Point(0.5, 0.5)
