"""Tests for chart frame layout."""

import pytest

from fabtrack.config import ChartConfig
from fabtrack.highlight import HighlightLayer
from fabtrack.models import GroupRecord, GroupSnapshot, RosterRecord
from fabtrack.output.chart import (
    EMPTY_MESSAGE,
    CircleShape,
    ImageShape,
    PathShape,
    TextShape,
    render_chart,
)
from fabtrack.timeline import active_horizon, assign_colors, build_season, build_timelines, season_horizon


@pytest.fixture()
def timelines(snapshots, season):
    return build_season(snapshots, season)


def _render(timelines, progress, highlight=None, chart=None, **overrides):
    chart = chart or ChartConfig()
    kwargs = dict(
        colors=assign_colors(timelines, chart.palette),
        highlight=highlight or HighlightLayer(),
        season_horizon=season_horizon(timelines, 18),
        active_horizon=active_horizon(timelines),
        value_ceiling=1000,
        chart=chart,
    )
    kwargs.update(overrides)
    return render_chart(timelines, progress, **kwargs)


def _paths(frame):
    return {s.entity: s for s in frame.shapes if isinstance(s, PathShape)}


class TestEmptyState:
    def test_no_timelines(self):
        frame = _render([], 1.0)
        assert frame.empty is True
        assert frame.tooltips == {}
        assert frame.shapes == [TextShape(450, 300, EMPTY_MESSAGE, size=14)]


class TestFullProgress:
    def test_every_team_drawn(self, timelines):
        frame = _render(timelines, 1.0)
        assert set(_paths(frame)) == {t.key for t in timelines}
        assert set(frame.tooltips) == {t.key for t in timelines}

    def test_lines_extended_to_horizon(self, timelines):
        chart = ChartConfig()
        frame = _render(timelines, 1.0, chart=chart)
        alpha_end = _paths(frame)[("lg-a", 1)].commands[-1]
        # active horizon 9.5 is the right edge of the plot
        assert alpha_end.x == pytest.approx(chart.margin_left + chart.plot_width)

    def test_chopped_team_greyed_and_labelled(self, timelines):
        frame = _render(timelines, 1.0)
        assert _paths(frame)[("lg-a", 2)].stroke == "#999"
        tip = frame.tooltips[("lg-a", 2)]
        assert tip.eliminated is True
        assert tip.value == 900
        assert tip.label == "FAB at Elimination"

    def test_alive_team_tooltip(self, timelines):
        tip = _render(timelines, 1.0).tooltips[("lg-a", 1)]
        assert (tip.name, tip.value, tip.label) == ("Alpha Dogs", 550, "Current FAB")

    def test_avatar_image_or_initials(self, timelines):
        frame = _render(timelines, 1.0)
        images = [s for s in frame.shapes if isinstance(s, ImageShape)]
        assert [s.entity for s in images] == [("lg-a", 1)]
        assert images[0].href.endswith("/av1")
        initials = [s.text for s in frame.shapes if isinstance(s, TextShape) and s.entity == ("lg-a", 3)]
        assert initials == ["CH"]

    def test_grid_and_axis_labels(self, timelines):
        texts = [s.text for s in _render(timelines, 1.0).shapes if isinstance(s, TextShape)]
        assert "$0" in texts and "$1000" in texts
        assert "Week" in texts and "FAB Remaining" in texts


class TestPartialProgress:
    def test_prefix_interpolated(self, timelines):
        frame = _render(timelines, 0.5)  # period position 4.75
        assert frame.tooltips[("lg-a", 1)].value == 619

    def test_not_yet_chopped(self, timelines):
        frame = _render(timelines, 0.5)
        assert frame.tooltips[("lg-a", 2)].eliminated is False
        assert _paths(frame)[("lg-a", 2)].stroke != "#999"

    def test_no_extension_before_end(self, timelines):
        chart = ChartConfig()
        frame = _render(timelines, 0.1, chart=chart)
        charlie_end = _paths(frame)[("lg-a", 3)].commands[-1]
        # Charlie never bid: only the origin is visible
        assert charlie_end.x == chart.margin_left

    def test_progress_clamped(self, timelines):
        assert _render(timelines, 1.7).progress == 1.0
        assert _render(timelines, -1).progress == 0.0


class TestFocusAndDeclutter:
    def test_focused_line_and_avatar_on_top(self, timelines):
        highlight = HighlightLayer()
        highlight.set_focus(("lg-a", 3))
        frame = _render(timelines, 1.0, highlight=highlight)
        paths = _paths(frame)
        assert paths[("lg-a", 3)].glow is True
        assert paths[("lg-a", 3)].width == 4
        assert paths[("lg-b", 1)].opacity == 0.4
        circles = [s for s in frame.shapes if isinstance(s, CircleShape)]
        assert circles[-1].entity == ("lg-a", 3)
        assert frame.focused == ("lg-a", 3)

    def test_coincident_endpoints_offset(self, season):
        snapshot = GroupSnapshot(
            group=GroupRecord(group_id="g", cap=500),
            roster=[
                RosterRecord(entity_id=1, current_value=500, display_name="One"),
                RosterRecord(entity_id=2, current_value=500, display_name="Two"),
            ],
        )
        twins = list(build_timelines(snapshot, season).values())
        frame = _render(twins, 1.0, value_ceiling=500)
        first, second = [s for s in frame.shapes if isinstance(s, CircleShape)]
        assert (second.cx - first.cx, second.cy - first.cy) == (2.5, 5)
        # the line follows its avatar
        assert _paths(frame)[("g", 2)].commands[-1].y == second.cy

    def test_shapes_for(self, timelines):
        frame = _render(timelines, 1.0)
        kinds = {type(s) for s in frame.shapes_for(("lg-a", 1))}
        assert kinds == {PathShape, CircleShape, ImageShape}

    def test_focus_outside_view_dims_nothing(self, timelines):
        highlight = HighlightLayer()
        highlight.set_focus(("lg-a", 1))
        visible = [t for t in timelines if t.group_id == "lg-a" and t.entity_id != 1]
        frame = _render(visible, 1.0, highlight=highlight)
        assert frame.focused is None
        assert {p.opacity for p in _paths(frame).values() if p.stroke != "#999"} == {1.0}
        assert not any(p.glow for p in _paths(frame).values())
