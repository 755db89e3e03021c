"""Tests for smooth path construction."""

import pytest

from fabtrack.models import RenderOverride, RenderPoint, TimelinePoint
from fabtrack.output.curves import (
    CubicTo,
    MoveTo,
    bezier_point,
    build_path,
    control_points,
    flatten_path,
    path_to_svg,
    position_along,
    segment_tension,
    with_endpoint_override,
)


def x_scale(position):
    return position * 10


def y_scale(value):
    return 1000 - value


def _pt(period, value, progress=0.0):
    return TimelinePoint(period=period, period_progress=progress, value=value)


class TestSegmentTension:
    def test_small_drop_loose(self):
        assert segment_tension(0) == 0.6
        assert segment_tension(50) == 0.6

    def test_big_drop_tight(self):
        assert segment_tension(150) == pytest.approx(0.3)
        assert segment_tension(10_000) == 0.3

    def test_in_between(self):
        assert segment_tension(100) == pytest.approx(0.5)
        assert segment_tension(-100) == pytest.approx(0.5)

    def test_degenerate_scale(self):
        assert segment_tension(100, scale=0) == 0.3

    @pytest.mark.parametrize("delta", [0, 1e-12, 60, 80, 140, 1e9, float("inf")])
    def test_always_bounded(self, delta):
        assert 0.3 <= segment_tension(delta) <= 0.6


class TestBuildPath:
    def test_no_points(self):
        assert build_path([], x_scale, y_scale) == []

    def test_single_point(self):
        assert build_path([_pt(2, 800)], x_scale, y_scale) == [MoveTo(20, 200)]

    def test_segments(self):
        commands = build_path([_pt(0, 1000), _pt(2, 850), _pt(5, 550)], x_scale, y_scale)
        assert commands[0] == MoveTo(0, 0)
        assert len(commands) == 3
        first = commands[1]
        assert isinstance(first, CubicTo)
        # 150 drop -> tension 0.3
        assert (first.c1x, first.c1y) == pytest.approx((6, 15))
        assert (first.c2x, first.c2y) == pytest.approx((14, 135))
        assert (first.x, first.y) == (20, 150)

    def test_endpoint_override_only_moves_last_point(self):
        points = with_endpoint_override([_pt(0, 1000), _pt(2, 850), _pt(5, 550)], 52.5, 455)
        commands = build_path(points, x_scale, y_scale)
        assert (commands[1].x, commands[1].y) == (20, 150)
        assert (commands[2].x, commands[2].y) == (52.5, 455)

    def test_override_on_single_point(self):
        points = with_endpoint_override([_pt(2, 800)], 1, 2)
        assert build_path(points, x_scale, y_scale) == [MoveTo(1, 2)]

    def test_override_not_last_is_ignored(self):
        points = [
            RenderPoint(point=_pt(0, 1000), override=RenderOverride(x=-5, y=-5)),
            RenderPoint(point=_pt(2, 850)),
        ]
        assert build_path(points, x_scale, y_scale)[0] == MoveTo(0, 0)

    def test_override_leaves_timeline_point_alone(self):
        original = [_pt(0, 1000), _pt(2, 850)]
        wrapped = with_endpoint_override(original, 1, 1)
        assert wrapped[-1].point is original[-1]
        assert wrapped[-1].override == RenderOverride(x=1, y=1)

    def test_flat_segment(self):
        commands = build_path([_pt(0, 500), _pt(4, 500)], x_scale, y_scale)
        seg = commands[1]
        assert seg.c1y == seg.c2y == seg.y == 500


class TestControlPoints:
    def test_vertical_weighting(self):
        cp1, cp2 = control_points((0, 0), (10, 100), 0.5)
        assert cp1 == (5, 10)
        assert cp2 == (5, 90)


class TestSvgAndSampling:
    def test_path_to_svg(self):
        commands = build_path([_pt(0, 1000), _pt(2, 900)], x_scale, y_scale)
        assert path_to_svg(commands) == "M 0 0 C 10 10, 10 90, 20 100"

    def test_bezier_endpoints(self):
        p0, c1, c2, p1 = (0, 0), (1, 5), (3, 5), (4, 0)
        assert bezier_point(p0, c1, c2, p1, 0) == (0, 0)
        assert bezier_point(p0, c1, c2, p1, 1) == (4, 0)

    def test_flatten_path(self):
        commands = build_path([_pt(0, 1000), _pt(2, 900)], x_scale, y_scale)
        coords = flatten_path(commands, steps=4)
        assert len(coords) == 5
        assert coords[0] == (0, 0)
        assert coords[-1] == pytest.approx((20, 100))

    def test_position_along(self):
        points = [_pt(0, 1000), _pt(2, 900)]
        assert position_along(points, x_scale, y_scale, 0) == pytest.approx((0, 0))
        assert position_along(points, x_scale, y_scale, 2) == pytest.approx((20, 100))
        assert position_along(points, x_scale, y_scale, 7) == (20, 100)
        assert position_along([], x_scale, y_scale, 1) is None
