"""Snapshot loader: reads league data saved from the provider API.

Layout under ``data_dir``::

    <group_id>/league.json
    <group_id>/rosters.json
    <group_id>/users.json
    <group_id>/transactions/<period>.json

Whatever loaded is what the engine sees: a missing or unreadable period file
is skipped, exactly as if that period had no transactions.
"""

import json
import logging
from pathlib import Path
from typing import Any

from fabtrack.config import Config
from fabtrack.models import EventRecord, GroupRecord, GroupSnapshot, RosterRecord

logger = logging.getLogger(__name__)


class LoadResult:
    """Summary of a season load."""

    def __init__(self) -> None:
        self.snapshots: list[GroupSnapshot] = []
        self.failed_groups: list[str] = []
        self.periods_missing = 0
        self.periods_unreadable = 0

    @property
    def total_events(self) -> int:
        return sum(len(s.events) for s in self.snapshots)

    def __repr__(self) -> str:
        parts = [
            f"LoadResult({len(self.snapshots)} groups, {self.total_events} events",
        ]
        if self.failed_groups:
            parts.append(f", failed={','.join(self.failed_groups)}")
        if self.periods_missing:
            parts.append(f", missing_periods={self.periods_missing}")
        if self.periods_unreadable:
            parts.append(f", unreadable_periods={self.periods_unreadable}")
        parts.append(")")
        return "".join(parts)


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _team_name(user: dict | None) -> str:
    if not user:
        return "Unknown"
    metadata = _as_dict(user.get("metadata"))
    return (
        metadata.get("team_name")
        or metadata.get("team_name_full")
        or user.get("display_name")
        or user.get("username")
        or "Unknown"
    )


def parse_roster(raw: dict, cap: float, users_by_id: dict[str, dict]) -> RosterRecord | None:
    """One provider roster → RosterRecord. Rosters without an id are skipped."""
    entity_id = _as_int(raw.get("roster_id"))
    if entity_id is None:
        return None
    settings = _as_dict(raw.get("settings"))
    used = float(settings.get("waiver_budget_used") or 0)
    user = users_by_id.get(raw.get("owner_id"))
    eliminated = "eliminated" in settings

    return RosterRecord(
        entity_id=entity_id,
        current_value=cap - used,
        eliminated=eliminated,
        eliminated_period=(_as_int(settings.get("eliminated")) or None) if eliminated else None,
        display_name=_team_name(user),
        avatar_ref=(user or {}).get("avatar") or None,
    )


def parse_event(raw: dict, period: int) -> EventRecord:
    roster_ids = raw.get("roster_ids") or []
    settings = _as_dict(raw.get("settings"))
    return EventRecord(
        entity_id=_as_int(roster_ids[0]) if isinstance(roster_ids, list) and roster_ids else None,
        period=period,
        bid_amount=float(settings.get("waiver_bid") or 0),
        status=str(raw.get("status") or ""),
        event_type=str(raw.get("type") or ""),
        timestamp=int(raw.get("status_updated") or raw.get("created") or 0),
    )


def load_group(group_dir: Path, max_periods: int, result: LoadResult | None = None) -> GroupSnapshot:
    """Load one group's snapshot.

    Raises FileNotFoundError without league.json and ValueError when a
    top-level file has the wrong JSON shape.
    """
    league_path = group_dir / "league.json"
    if not league_path.exists():
        raise FileNotFoundError(f"No league.json in {group_dir}")

    league = _read_json(league_path)
    if not isinstance(league, dict):
        raise ValueError(f"{league_path} is not a JSON object")
    settings = _as_dict(league.get("settings"))
    group = GroupRecord(
        group_id=str(league.get("league_id") or group_dir.name),
        name=league.get("name") or "",
        cap=float(settings.get("waiver_budget") or 0),
    )

    users_path = group_dir / "users.json"
    users = _read_json(users_path) if users_path.exists() else []
    if not isinstance(users, list):
        raise ValueError(f"{users_path} is not a JSON list")
    users_by_id = {u.get("user_id"): u for u in users if isinstance(u, dict)}

    rosters_path = group_dir / "rosters.json"
    raw_rosters = _read_json(rosters_path) if rosters_path.exists() else []
    if not isinstance(raw_rosters, list):
        raise ValueError(f"{rosters_path} is not a JSON list")
    roster = [
        r for r in (
            parse_roster(raw, group.cap, users_by_id) for raw in raw_rosters if isinstance(raw, dict)
        )
        if r is not None
    ]

    events: list[EventRecord] = []
    for period in range(1, max_periods + 1):
        path = group_dir / "transactions" / f"{period}.json"
        if not path.exists():
            if result is not None:
                result.periods_missing += 1
            continue
        try:
            raw_events = _read_json(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Skipping %s: %s", path, e)
            if result is not None:
                result.periods_unreadable += 1
            continue
        if not isinstance(raw_events, list):
            continue
        for raw in raw_events:
            if not isinstance(raw, dict):
                continue
            try:
                events.append(parse_event(raw, period))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed transaction in %s: %s", path, e)

    logger.debug(
        "Loaded group %s: cap=%s, %d rosters, %d events",
        group.group_id, group.cap, len(roster), len(events),
    )
    return GroupSnapshot(group=group, roster=roster, events=events)


def load_season(config: Config, data_dir: Path | None = None) -> LoadResult:
    """Load every configured group, skipping (and logging) groups that fail."""
    data_dir = data_dir or config.resolved_data_dir
    result = LoadResult()

    for group_id in config.season.group_ids:
        try:
            snapshot = load_group(data_dir / group_id, config.season.max_periods, result)
            result.snapshots.append(snapshot)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to load group %s", group_id)
            result.failed_groups.append(group_id)

    logger.info("Load complete: %s", result)
    return result
