#!/usr/bin/env python3
"""FAB replay MCP server — query reconstructed budget timelines."""

import json
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from fabtrack.animation import AnimationController, ManualScheduler
from fabtrack.config import Config, load_config
from fabtrack.ingest import load_season
from fabtrack.models import ALL_GROUPS, GroupSnapshot, StatusScope
from fabtrack.output.svg import frame_to_svg
from fabtrack.timeline import build_season, build_timelines, conservation_gap
from fabtrack.view_filter import filter_view

mcp = FastMCP("fabtrack")
logger = logging.getLogger(__name__)

# Redirect all logging to stderr so stdout stays clean for MCP stdio transport
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_snapshots: list[GroupSnapshot] | None = None
_config: Config | None = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_snapshots() -> list[GroupSnapshot]:
    global _snapshots
    if _snapshots is None:
        _snapshots = load_season(_get_config()).snapshots
    return _snapshots


def _find_snapshot(group_id: str) -> GroupSnapshot:
    for snapshot in _get_snapshots():
        if snapshot.group.group_id == group_id:
            return snapshot
    raise ValueError(f"Group {group_id!r} not loaded")


@mcp.tool()
def get_timelines(group_id: str) -> str:
    """Get every team's reconstructed FAB timeline for one league."""
    try:
        timelines = build_timelines(_find_snapshot(group_id), _get_config().season)
        return json.dumps([t.model_dump() for t in timelines.values()])
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def get_view(group_scope: str = ALL_GROUPS, status_scope: str = "all") -> str:
    """List teams in chart order. status_scope is all, remaining or chopped."""
    try:
        timelines = build_season(_get_snapshots(), _get_config().season)
        view = filter_view(timelines, group_scope, StatusScope(status_scope))
        return json.dumps([
            {
                "group_id": t.group_id,
                "entity_id": t.entity_id,
                "name": t.display_name,
                "value": t.last_value,
                "eliminated": t.eliminated,
                "eliminated_period": t.eliminated_period,
            }
            for t in view
        ])
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def verify_conservation(group_id: Optional[str] = None) -> str:
    """Compare reconstructed spend with roster-reported FAB for every team."""
    try:
        snapshots = [_find_snapshot(group_id)] if group_id else _get_snapshots()
        timelines = build_season(snapshots, _get_config().season)
        return json.dumps([
            {
                "group_id": t.group_id,
                "entity_id": t.entity_id,
                "name": t.display_name,
                "gap": conservation_gap(t),
            }
            for t in timelines
        ])
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def render_chart_svg(
    progress: float = 1.0,
    group_scope: str = ALL_GROUPS,
    status_scope: str = "all",
) -> str:
    """Render the FAB chart at a replay progress (0..1) as an SVG document."""
    try:
        if not 0.0 <= progress <= 1.0:
            raise ValueError(f"progress must be within [0, 1], got {progress}")
        controller = AnimationController.create(_get_snapshots(), _get_config(), ManualScheduler())
        controller.on_filter_change(group_scope=group_scope, status_scope=status_scope)
        if progress < 1.0:
            controller.resume(progress)
            controller.pause(at_progress=progress)
        svg = frame_to_svg(controller.current_frame())
        controller.dispose()
        return json.dumps({"svg": svg})
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


if __name__ == "__main__":
    mcp.run()
