"""Rebuild each team's remaining-FAB timeline from the league transaction log."""

import logging
import math
from collections.abc import Iterable, Sequence

from fabtrack.config import SeasonConfig
from fabtrack.models import EntityKey, GroupSnapshot, Timeline, TimelinePoint

logger = logging.getLogger(__name__)


def period_progress(timestamp: int, period: int, season: SeasonConfig) -> float:
    """Place a timestamp inside its period window, clamped to [0, 1]."""
    if season.period_length_ms <= 0:
        return 0.0
    period_start = season.epoch_ms + (period - 1) * season.period_length_ms
    progress = (timestamp - period_start) / season.period_length_ms
    return max(0.0, min(1.0, progress))


def build_timelines(snapshot: GroupSnapshot, season: SeasonConfig) -> dict[int, Timeline]:
    """Fold one group's event log into a timeline per roster entry.

    Events for rosters we don't know about are dropped; a missing cap means
    every value collapses to 0. Same inputs always give identical output.
    """
    group = snapshot.group
    cap = float(group.cap or 0)

    points: dict[int, list[TimelinePoint]] = {}
    for r in snapshot.roster:
        points[r.entity_id] = [TimelinePoint(period=0, period_progress=0.0, value=cap, timestamp=0)]

    if not points:
        return {}

    # sorted() is stable, so same-key events keep log order
    bids = sorted(
        (e for e in snapshot.events if e.is_budget_bid),
        key=lambda e: (e.period, e.timestamp),
    )

    dropped = 0
    for event in bids:
        series = points.get(event.entity_id) if event.entity_id is not None else None
        if series is None:
            dropped += 1
            continue
        last = series[-1]
        series.append(TimelinePoint(
            period=event.period,
            period_progress=period_progress(event.timestamp, event.period, season),
            value=last.value - event.bid_amount,
            timestamp=event.timestamp,
        ))

    if dropped:
        logger.debug("Group %s: dropped %d bids for unknown rosters", group.group_id, dropped)

    timelines: dict[int, Timeline] = {}
    for r in snapshot.roster:
        timelines[r.entity_id] = Timeline(
            group_id=group.group_id,
            entity_id=r.entity_id,
            display_name=r.display_name,
            avatar_ref=r.avatar_ref,
            initials=r.initials,
            eliminated=r.eliminated,
            eliminated_period=r.eliminated_period if r.eliminated else None,
            cap=cap,
            current_value=r.current_value,
            points=tuple(points[r.entity_id]),
        )
    return timelines


def build_season(snapshots: Iterable[GroupSnapshot], season: SeasonConfig) -> list[Timeline]:
    """Timelines for every group, in load order."""
    result: list[Timeline] = []
    for snapshot in snapshots:
        timelines = build_timelines(snapshot, season)
        logger.info(
            "Group %s: %d timelines from %d events",
            snapshot.group.group_id, len(timelines), len(snapshot.events),
        )
        result.extend(timelines.values())
    return result


def assign_colors(timelines: Sequence[Timeline], palette: Sequence[str]) -> dict[EntityKey, str]:
    """Give every team a color once per load, cycling the palette."""
    colors: dict[EntityKey, str] = {}
    if not palette:
        return colors
    for i, t in enumerate(timelines):
        colors.setdefault(t.key, palette[i % len(palette)])
    return colors


def season_horizon(timelines: Iterable[Timeline], default: float) -> float:
    """Furthest period position in the data, used as the x-axis extent."""
    furthest = max((t.max_position for t in timelines), default=0.0)
    return furthest if furthest > 0 else float(default)


def active_horizon(timelines: Iterable[Timeline]) -> float:
    """Furthest period position reached by any team still alive."""
    return max((t.max_position for t in timelines if not t.eliminated), default=0.0)


def value_ceiling(timelines: Iterable[Timeline]) -> float:
    return max((t.cap for t in timelines), default=0.0) or 1.0


def _point_at(position: float, value: float, timestamp: int) -> TimelinePoint:
    period = math.floor(position)
    return TimelinePoint(
        period=period,
        period_progress=min(1.0, max(0.0, position - period)),
        value=value,
        timestamp=timestamp,
    )


def visible_prefix(points: Sequence[TimelinePoint], target: float) -> list[TimelinePoint]:
    """Points revealed up to period position ``target``.

    When the cut falls strictly between two recorded points, one partial point
    is interpolated on the boundary. Never empty for non-empty input.
    """
    visible: list[TimelinePoint] = []
    for i, point in enumerate(points):
        if point.position <= target:
            visible.append(point)
            continue
        if i > 0 and points[i - 1].position < target:
            prev = points[i - 1]
            span = point.position - prev.position
            frac = (target - prev.position) / span if span > 0 else 0.0
            visible.append(_point_at(
                target,
                prev.value + (point.value - prev.value) * frac,
                prev.timestamp,
            ))
        break

    if not visible and points:
        visible = [points[0]]
    return visible


def extend_to_horizon(
    timeline: Timeline,
    points: Sequence[TimelinePoint],
    horizon: float,
) -> list[TimelinePoint]:
    """Add a flat trailing point so finished lines end at a common place.

    Chopped teams stop at their elimination period; everyone else runs out
    to ``horizon``.
    """
    extended = list(points)
    if not extended:
        return extended

    if timeline.eliminated and timeline.eliminated_period:
        cutoff = timeline.eliminated_period
        extended = [p for p in extended if p.period <= cutoff]
        if not extended:
            return extended
        last = extended[-1]
        if last.period < cutoff:
            extended.append(TimelinePoint(
                period=cutoff, period_progress=0.0, value=last.value, timestamp=last.timestamp,
            ))
        return extended

    last = extended[-1]
    if last.position < horizon:
        extended.append(_point_at(horizon, last.value, last.timestamp))
    return extended


def spent(timeline: Timeline) -> float:
    return timeline.cap - timeline.last_value


def conservation_gap(timeline: Timeline) -> float:
    """Difference between roster-reported spend and reconstructed spend."""
    return (timeline.cap - timeline.current_value) - spent(timeline)
