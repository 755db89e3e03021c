"""Tests for league / team-status filtering."""

import pytest

from fabtrack.models import StatusScope, Timeline, TimelinePoint
from fabtrack.timeline import build_season
from fabtrack.view_filter import filter_view


@pytest.fixture()
def timelines(snapshots, season):
    return build_season(snapshots, season)


def _keys(view):
    return [t.key for t in view]


class TestFilterView:
    def test_all_sorted_by_latest_value(self, timelines):
        assert _keys(filter_view(timelines)) == [
            ("lg-a", 3),  # 1000
            ("lg-b", 1),  # 950
            ("lg-a", 2),  # 900
            ("lg-a", 1),  # 550
        ]

    def test_group_scope(self, timelines):
        assert _keys(filter_view(timelines, "lg-b")) == [("lg-b", 1)]
        assert filter_view(timelines, "no-such-league") == []

    def test_remaining_includes_alpha_only_while_alive(self, timelines):
        remaining = _keys(filter_view(timelines, status_scope=StatusScope.REMAINING))
        assert ("lg-a", 1) in remaining
        assert ("lg-a", 2) not in remaining

    def test_chopped(self, timelines):
        assert _keys(filter_view(timelines, "all", "chopped")) == [("lg-a", 2)]

    def test_filters_combine(self, timelines):
        assert _keys(filter_view(timelines, "lg-b", StatusScope.CHOPPED)) == []
        assert _keys(filter_view(timelines, "lg-a", StatusScope.REMAINING)) == [("lg-a", 3), ("lg-a", 1)]

    def test_ties_keep_input_order(self):
        flat = [
            Timeline(group_id="g", entity_id=i, points=(TimelinePoint(period=0, value=100),))
            for i in (5, 2, 9)
        ]
        assert [t.entity_id for t in filter_view(flat)] == [5, 2, 9]
        assert [t.entity_id for t in filter_view(list(reversed(flat)))] == [9, 2, 5]

    def test_does_not_mutate_input(self, timelines):
        source = list(timelines)
        dumped = [t.model_dump_json() for t in source]
        result = filter_view(source, "lg-a", StatusScope.REMAINING)
        assert source == timelines
        assert [t.model_dump_json() for t in source] == dumped
        assert result is not source

    def test_pure(self, timelines):
        assert filter_view(timelines, "lg-a") == filter_view(timelines, "lg-a")

    def test_empty(self):
        assert filter_view([]) == []

    def test_rejects_unknown_status(self, timelines):
        with pytest.raises(ValueError):
            filter_view(timelines, status_scope="sideways")
