"""Shared test fixtures for fabtrack tests."""

import json

import pytest

from fabtrack.animation import ManualClock, ManualScheduler
from fabtrack.config import ChartConfig, Config, ReplayConfig, SeasonConfig
from fabtrack.models import EventRecord, GroupRecord, GroupSnapshot, RosterRecord


def ts(period: int, progress: float = 0.0) -> int:
    """Timestamp inside ``period`` for the 1-second periods used in tests."""
    return int((period - 1) * 1000 + progress * 1000)


@pytest.fixture()
def season():
    """Epoch 0 and 1000 ms periods keep period progress easy to read."""
    return SeasonConfig(group_ids=["lg-a", "lg-b"], epoch_ms=0, period_length_ms=1000, max_periods=18)


@pytest.fixture()
def config(season, tmp_path):
    return Config(
        data_dir=str(tmp_path),
        season=season,
        replay=ReplayConfig(duration_ms=1000, gif_fps=20, gif_hold_ms=500),
        chart=ChartConfig(),
    )


@pytest.fixture()
def group_a():
    """cap 1000; Alpha spends 150 then 300, Bravo is chopped in week 7, Charlie never bids."""
    return GroupSnapshot(
        group=GroupRecord(group_id="lg-a", name="League A", cap=1000),
        roster=[
            RosterRecord(entity_id=1, current_value=550, display_name="Alpha Dogs", avatar_ref="av1"),
            RosterRecord(
                entity_id=2, current_value=900, eliminated=True, eliminated_period=7,
                display_name="Bravo",
            ),
            RosterRecord(entity_id=3, current_value=1000, display_name="Charlie Horse"),
        ],
        events=[
            EventRecord(entity_id=1, period=5, bid_amount=300, status="complete", timestamp=ts(5, 0.5)),
            EventRecord(entity_id=1, period=2, bid_amount=150, status="complete", timestamp=ts(2, 0.25)),
            EventRecord(entity_id=2, period=3, bid_amount=100, status="complete", timestamp=ts(3)),
            # none of these count
            EventRecord(entity_id=1, period=4, bid_amount=999, status="failed", timestamp=ts(4)),
            EventRecord(entity_id=3, period=4, bid_amount=50, status="complete", event_type="free_agent"),
            EventRecord(entity_id=99, period=4, bid_amount=75, status="complete", timestamp=ts(4)),
            EventRecord(entity_id=None, period=4, bid_amount=10, status="complete", timestamp=ts(4)),
        ],
    )


@pytest.fixture()
def group_b():
    return GroupSnapshot(
        group=GroupRecord(group_id="lg-b", name="League B", cap=1000),
        roster=[
            RosterRecord(entity_id=1, current_value=950, display_name="Delta"),
        ],
        events=[
            EventRecord(entity_id=1, period=9, bid_amount=50, status="complete", timestamp=ts(9, 0.5)),
        ],
    )


@pytest.fixture()
def snapshots(group_a, group_b):
    return [group_a, group_b]


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def provider_dir(tmp_path):
    """On-disk snapshot in the provider's JSON shape for league lg-a."""
    root = tmp_path / "lg-a"
    (root / "transactions").mkdir(parents=True)

    (root / "league.json").write_text(json.dumps({
        "league_id": "lg-a", "name": "League A", "settings": {"waiver_budget": 1000},
    }))
    (root / "users.json").write_text(json.dumps([
        {"user_id": "u1", "display_name": "alpha_owner", "avatar": "av1",
         "metadata": {"team_name": "Alpha Dogs"}},
        {"user_id": "u2", "display_name": "bravo_owner", "metadata": {}},
        {"user_id": "u3", "username": "charlie", "avatar": None},
    ]))
    (root / "rosters.json").write_text(json.dumps([
        {"roster_id": 1, "owner_id": "u1", "settings": {"waiver_budget_used": 450}},
        {"roster_id": 2, "owner_id": "u2", "settings": {"waiver_budget_used": 100, "eliminated": 7}},
        {"roster_id": 3, "owner_id": "u3", "settings": {}},
        {"roster_id": 4, "owner_id": "nobody", "settings": {}},
    ]))
    (root / "transactions" / "2.json").write_text(json.dumps([
        {"type": "waiver", "status": "complete", "roster_ids": [1],
         "settings": {"waiver_bid": 150}, "status_updated": ts(2, 0.25)},
        {"type": "free_agent", "status": "complete", "roster_ids": [3], "created": ts(2)},
    ]))
    (root / "transactions" / "3.json").write_text(json.dumps([
        {"type": "waiver", "status": "complete", "roster_ids": [2],
         "settings": {"waiver_bid": 100}, "created": ts(3)},
        {"type": "waiver", "status": "failed", "roster_ids": [1],
         "settings": {"waiver_bid": 500}, "status_updated": ts(3, 0.1)},
    ]))
    (root / "transactions" / "5.json").write_text(json.dumps([
        {"type": "waiver", "status": "complete", "roster_ids": [1],
         "settings": {"waiver_bid": 300}, "status_updated": ts(5, 0.5)},
    ]))
    # a period that failed to download part-way
    (root / "transactions" / "6.json").write_text("{not json")
    return tmp_path
