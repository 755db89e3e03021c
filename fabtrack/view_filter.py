"""League and team-status filtering for the replay chart."""

from collections.abc import Sequence

from fabtrack.models import ALL_GROUPS, StatusScope, Timeline


def _in_status(timeline: Timeline, status_scope: StatusScope) -> bool:
    if status_scope == StatusScope.REMAINING:
        return not timeline.eliminated
    if status_scope == StatusScope.CHOPPED:
        return timeline.eliminated
    return True


def filter_view(
    timelines: Sequence[Timeline],
    group_scope: str = ALL_GROUPS,
    status_scope: StatusScope | str = StatusScope.ALL,
) -> list[Timeline]:
    """Return the visible teams, richest first.

    Never touches the input; ties keep their input order.
    """
    status_scope = StatusScope(status_scope)
    selected = [
        t for t in timelines
        if (group_scope == ALL_GROUPS or t.group_id == group_scope)
        and _in_status(t, status_scope)
    ]
    return sorted(selected, key=lambda t: t.last_value, reverse=True)
