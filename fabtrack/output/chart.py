"""Lay out one frame of the FAB replay chart as primitive draw instructions.

The frame knows nothing about SVG or pixels; ``svg.py`` and ``raster.py``
turn it into output. Teams are laid out richest first so z-order and
declutter order are stable from frame to frame.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from fabtrack.config import ChartConfig
from fabtrack.highlight import CHOPPED_COLOR, CHOPPED_FILL, HighlightLayer, is_chopped_at
from fabtrack.models import EntityKey, Timeline, TimelinePoint
from fabtrack.output.curves import PathCommand, build_path, with_endpoint_override
from fabtrack.output.declutter import declutter
from fabtrack.timeline import extend_to_horizon, visible_prefix

logger = logging.getLogger(__name__)

GRID_COLOR = "#e0e0e0"
LABEL_COLOR = "#666"
AXIS_COLOR = "#333"
EMPTY_MESSAGE = "No teams to display"


# --- Draw primitives ---


@dataclass(frozen=True)
class LineShape:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = GRID_COLOR
    width: float = 1


@dataclass(frozen=True)
class TextShape:
    x: float
    y: float
    text: str
    size: int = 12
    fill: str = LABEL_COLOR
    anchor: str = "middle"  # start | middle | end
    bold: bool = False
    rotate: float = 0
    entity: EntityKey | None = None


@dataclass(frozen=True)
class PathShape:
    commands: tuple[PathCommand, ...]
    stroke: str
    width: float
    opacity: float
    glow: bool
    entity: EntityKey


@dataclass(frozen=True)
class CircleShape:
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str
    width: float = 2
    entity: EntityKey | None = None


@dataclass(frozen=True)
class ImageShape:
    x: float
    y: float
    size: float
    href: str
    clip_radius: float
    opacity: float = 1.0
    entity: EntityKey | None = None


Shape = LineShape | TextShape | PathShape | CircleShape | ImageShape


@dataclass(frozen=True)
class TooltipInfo:
    key: EntityKey
    name: str
    value: int
    eliminated: bool

    @property
    def label(self) -> str:
        return "FAB at Elimination" if self.eliminated else "Current FAB"


@dataclass
class ChartFrame:
    width: int
    height: int
    progress: float
    shapes: list[Shape] = field(default_factory=list)
    tooltips: dict[EntityKey, TooltipInfo] = field(default_factory=dict)
    focused: EntityKey | None = None
    empty: bool = False

    def shapes_for(self, key: EntityKey) -> list[Shape]:
        return [s for s in self.shapes if getattr(s, "entity", None) == key]


@dataclass
class _Entry:
    timeline: Timeline
    points: list[TimelinePoint]
    x: float
    y: float
    chopped: bool
    dx: float = 0.0
    dy: float = 0.0


def _grid(chart: ChartConfig, horizon: float, ceiling: float, x_scale, y_scale) -> list[Shape]:
    shapes: list[Shape] = []
    left = chart.margin_left
    right = chart.margin_left + chart.plot_width
    top = chart.margin_top
    bottom = chart.margin_top + chart.plot_height

    steps = max(chart.value_steps, 1)
    for i in range(steps + 1):
        value = ceiling / steps * i
        y = y_scale(value)
        shapes.append(LineShape(left, y, right, y))
        shapes.append(TextShape(left - 10, y + 4, f"${round(value)}", anchor="end"))

    period = 0
    while period <= horizon:
        x = x_scale(period)
        shapes.append(LineShape(x, top, x, bottom))
        shapes.append(TextShape(x, bottom + 20, str(period)))
        period += max(chart.period_step, 1)

    shapes.append(TextShape(
        left + chart.plot_width / 2, chart.height - 10, chart.x_label,
        size=14, fill=AXIS_COLOR, bold=True,
    ))
    shapes.append(TextShape(
        -top - chart.plot_height / 2, 20, chart.y_label,
        size=14, fill=AXIS_COLOR, bold=True, rotate=-90,
    ))
    return shapes


def render_chart(
    timelines: Sequence[Timeline],
    progress: float,
    *,
    colors: dict[EntityKey, str],
    highlight: HighlightLayer,
    season_horizon: float,
    active_horizon: float,
    value_ceiling: float,
    chart: ChartConfig,
) -> ChartFrame:
    """Build the frame for ``timelines`` at replay ``progress`` (0..1).

    At full progress every line is extended to its horizon; before that only
    the revealed prefix is drawn.
    """
    progress = max(0.0, min(1.0, progress))
    focus_shown = any(highlight.is_focused(t.key) for t in timelines)
    frame = ChartFrame(
        chart.width, chart.height, progress,
        focused=highlight.focused if focus_shown else None,
    )

    if not timelines:
        frame.empty = True
        frame.shapes.append(TextShape(chart.width / 2, chart.height / 2, EMPTY_MESSAGE, size=14))
        return frame

    horizon = season_horizon if season_horizon > 0 else 1.0
    ceiling = value_ceiling if value_ceiling > 0 else 1.0

    def x_scale(position: float) -> float:
        return chart.margin_left + position / horizon * chart.plot_width

    def y_scale(value: float) -> float:
        return chart.margin_top + chart.plot_height - value / ceiling * chart.plot_height

    frame.shapes.extend(_grid(chart, horizon, ceiling, x_scale, y_scale))

    target = horizon * progress
    ordered = sorted(timelines, key=lambda t: t.current_value, reverse=True)

    entries: list[_Entry] = []
    for timeline in ordered:
        if progress < 1.0:
            points = visible_prefix(timeline.points, target)
        else:
            points = extend_to_horizon(timeline, timeline.points, active_horizon)
        if not points:
            continue
        last = points[-1]
        entries.append(_Entry(
            timeline=timeline,
            points=points,
            x=x_scale(last.position),
            y=y_scale(last.value),
            chopped=is_chopped_at(timeline, target),
        ))

    offsets = declutter(
        [(e.x, e.y) for e in entries],
        threshold=chart.declutter_threshold,
        offset=chart.declutter_offset,
    )
    for entry, (dx, dy) in zip(entries, offsets):
        entry.dx, entry.dy = dx, dy

    fallback = chart.palette[0] if chart.palette else "#888"
    for entry in entries:
        t = entry.timeline
        style = highlight.style_for(t, colors.get(t.key, fallback), entry.chopped, focus_shown)
        commands = build_path(
            with_endpoint_override(entry.points, entry.x + entry.dx, entry.y + entry.dy),
            x_scale, y_scale, tension_scale=chart.tension_scale,
        )
        frame.shapes.append(PathShape(
            commands=tuple(commands),
            stroke=style.color,
            width=style.width,
            opacity=style.opacity,
            glow=style.glow,
            entity=t.key,
        ))

    # Focused avatar goes last so it sits on top
    avatars = sorted(entries, key=lambda e: highlight.is_focused(e.timeline.key))
    for entry in avatars:
        frame.shapes.extend(_avatar(entry, colors.get(entry.timeline.key, fallback), chart))
        frame.tooltips[entry.timeline.key] = TooltipInfo(
            key=entry.timeline.key,
            name=entry.timeline.display_name or "Unknown",
            value=round(entry.points[-1].value),
            eliminated=entry.chopped,
        )

    return frame


def _avatar(entry: _Entry, color: str, chart: ChartConfig) -> list[Shape]:
    t = entry.timeline
    cx = entry.x + entry.dx
    cy = entry.y + entry.dy
    radius = chart.avatar_radius
    inner = radius * 0.8

    shapes: list[Shape] = [CircleShape(
        cx, cy, radius,
        fill=CHOPPED_FILL if entry.chopped else color,
        stroke=CHOPPED_COLOR if entry.chopped else color,
        entity=t.key,
    )]
    if t.avatar_ref:
        shapes.append(ImageShape(
            cx - inner, cy - inner, inner * 2,
            href=chart.avatar_url_template.format(ref=t.avatar_ref),
            clip_radius=inner,
            opacity=0.4 if entry.chopped else 1.0,
            entity=t.key,
        ))
    else:
        shapes.append(TextShape(
            cx, cy + 4, t.initials,
            bold=True,
            fill=LABEL_COLOR if entry.chopped else "#fff",
            entity=t.key,
        ))
    return shapes
