"""Smooth bezier paths through timeline points.

Each segment is a cubic whose horizontal control-point spread depends on how
far the value dropped: a big single bid gets a sharper bend so the curve does
not suggest a gradual slide. Tension is clamped so near-zero and huge drops
stay well-behaved.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from fabtrack.models import RenderOverride, RenderPoint, TimelinePoint

Scale = Callable[[float], float]
Coord = tuple[float, float]

MIN_TENSION = 0.3
MAX_TENSION = 0.6
DEFAULT_TENSION_SCALE = 200.0


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class CubicTo:
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float


PathCommand = MoveTo | CubicTo


def segment_tension(delta: float, scale: float = DEFAULT_TENSION_SCALE) -> float:
    if scale <= 0:
        return MIN_TENSION
    return max(MIN_TENSION, min(MAX_TENSION, 1 - abs(delta) / scale))


def control_points(start: Coord, end: Coord, tension: float) -> tuple[Coord, Coord]:
    """Most of the vertical movement happens near the end of the segment."""
    x0, y0 = start
    dx = end[0] - x0
    dy = end[1] - y0
    cp1 = (x0 + dx * tension, y0 + dy * 0.1)
    cp2 = (x0 + dx * (1 - tension), y0 + dy * 0.9)
    return cp1, cp2


def _as_render_point(p: TimelinePoint | RenderPoint) -> RenderPoint:
    return p if isinstance(p, RenderPoint) else RenderPoint(point=p)


def with_endpoint_override(
    points: Sequence[TimelinePoint], x: float, y: float,
) -> list[RenderPoint]:
    """Wrap points, pinning the last one to an on-screen position."""
    wrapped = [RenderPoint(point=p) for p in points]
    if wrapped:
        wrapped[-1] = RenderPoint(point=points[-1], override=RenderOverride(x=x, y=y))
    return wrapped


def _mapped(p: TimelinePoint, x_scale: Scale, y_scale: Scale) -> Coord:
    return x_scale(p.position), y_scale(p.value)


def build_path(
    points: Sequence[TimelinePoint | RenderPoint],
    x_scale: Scale,
    y_scale: Scale,
    tension_scale: float = DEFAULT_TENSION_SCALE,
) -> list[PathCommand]:
    """Path commands through ``points``; only the final point's override is honored."""
    if not points:
        return []

    rendered = [_as_render_point(p) for p in points]
    last = len(rendered) - 1

    def coord(i: int) -> Coord:
        rp = rendered[i]
        if i == last and rp.override is not None:
            return rp.override.x, rp.override.y
        return _mapped(rp.point, x_scale, y_scale)

    commands: list[PathCommand] = [MoveTo(*coord(0))]
    for i in range(1, len(rendered)):
        prev = rendered[i - 1].point
        cur = rendered[i].point
        start = _mapped(prev, x_scale, y_scale)
        end = coord(i)
        tension = segment_tension(cur.value - prev.value, tension_scale)
        (c1x, c1y), (c2x, c2y) = control_points(start, end, tension)
        commands.append(CubicTo(c1x, c1y, c2x, c2y, end[0], end[1]))
    return commands


def _num(v: float) -> str:
    return f"{v:.2f}".rstrip("0").rstrip(".")


def path_to_svg(commands: Sequence[PathCommand]) -> str:
    """Render commands as an SVG ``d`` attribute."""
    parts: list[str] = []
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            parts.append(f"M {_num(cmd.x)} {_num(cmd.y)}")
        else:
            parts.append(
                f"C {_num(cmd.c1x)} {_num(cmd.c1y)}, {_num(cmd.c2x)} {_num(cmd.c2y)}, "
                f"{_num(cmd.x)} {_num(cmd.y)}"
            )
    return " ".join(parts)


def bezier_point(p0: Coord, c1: Coord, c2: Coord, p1: Coord, t: float) -> Coord:
    """Evaluate a cubic bezier at ``t``."""
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * c1[0] + c * c2[0] + d * p1[0],
        a * p0[1] + b * c1[1] + c * c2[1] + d * p1[1],
    )


def flatten_path(commands: Sequence[PathCommand], steps: int = 16) -> list[Coord]:
    """Approximate a path with a polyline, for rasterizers without curves."""
    coords: list[Coord] = []
    pen: Coord | None = None
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            pen = (cmd.x, cmd.y)
            coords.append(pen)
            continue
        if pen is None:
            pen = (cmd.x, cmd.y)
            coords.append(pen)
            continue
        c1, c2, end = (cmd.c1x, cmd.c1y), (cmd.c2x, cmd.c2y), (cmd.x, cmd.y)
        for s in range(1, steps + 1):
            coords.append(bezier_point(pen, c1, c2, end, s / steps))
        pen = end
    return coords


def position_along(
    points: Sequence[TimelinePoint],
    x_scale: Scale,
    y_scale: Scale,
    position: float,
    tension_scale: float = DEFAULT_TENSION_SCALE,
) -> Coord | None:
    """Screen coordinate on the smooth curve at a period position."""
    if not points:
        return None
    if len(points) == 1:
        return _mapped(points[0], x_scale, y_scale)

    for prev, cur in zip(points, points[1:]):
        if prev.position <= position <= cur.position:
            start = _mapped(prev, x_scale, y_scale)
            end = _mapped(cur, x_scale, y_scale)
            tension = segment_tension(cur.value - prev.value, tension_scale)
            c1, c2 = control_points(start, end, tension)
            span = cur.position - prev.position
            t = (position - prev.position) / span if span > 0 else 0.0
            return bezier_point(start, c1, c2, end, t)

    return _mapped(points[-1], x_scale, y_scale)
