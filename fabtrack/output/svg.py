"""Serialize a chart frame to a self-contained SVG document."""

from pathlib import Path

from fabtrack.output.chart import (
    ChartFrame,
    CircleShape,
    ImageShape,
    LineShape,
    PathShape,
    TextShape,
)
from fabtrack.output.curves import path_to_svg

GLOW_FILTER = """<defs>
  <filter id="glow">
    <feGaussianBlur stdDeviation="3" result="coloredBlur"/>
    <feMerge><feMergeNode in="coloredBlur"/><feMergeNode in="SourceGraphic"/></feMerge>
  </filter>
</defs>"""


def _esc(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;").replace("'", "&#39;")


def _n(v: float) -> str:
    return f"{v:.2f}".rstrip("0").rstrip(".")


def _entity_attrs(frame: ChartFrame, entity) -> str:
    if entity is None:
        return ""
    attrs = f' data-team="{_esc(f"{entity[0]}-{entity[1]}")}"'
    tip = frame.tooltips.get(entity)
    if tip is not None:
        attrs += (
            f' data-team-name="{_esc(tip.name)}" data-fab="{tip.value}"'
            f' data-is-eliminated="{str(tip.eliminated).lower()}"'
        )
    return attrs


def _text(frame: ChartFrame, s: TextShape) -> str:
    weight = ' font-weight="bold"' if s.bold else ""
    transform = f' transform="rotate({_n(s.rotate)})"' if s.rotate else ""
    return (
        f'<text x="{_n(s.x)}" y="{_n(s.y)}" text-anchor="{s.anchor}" font-size="{s.size}"'
        f' fill="{s.fill}"{weight}{transform}{_entity_attrs(frame, s.entity)}>{_esc(s.text)}</text>'
    )


def frame_to_svg(frame: ChartFrame) -> str:
    """Render every shape in frame order; avatar images get their own clip path."""
    body: list[str] = []
    clip_count = 0

    for shape in frame.shapes:
        if isinstance(shape, LineShape):
            body.append(
                f'<line x1="{_n(shape.x1)}" y1="{_n(shape.y1)}" x2="{_n(shape.x2)}" y2="{_n(shape.y2)}"'
                f' stroke="{shape.stroke}" stroke-width="{_n(shape.width)}"/>'
            )
        elif isinstance(shape, TextShape):
            body.append(_text(frame, shape))
        elif isinstance(shape, PathShape):
            glow = ' filter="url(#glow)"' if shape.glow else ""
            body.append(
                f'<path class="team-line" d="{path_to_svg(shape.commands)}" stroke="{shape.stroke}"'
                f' stroke-width="{_n(shape.width)}" fill="none" opacity="{_n(shape.opacity)}"{glow}'
                f'{_entity_attrs(frame, shape.entity)}/>'
            )
        elif isinstance(shape, CircleShape):
            body.append(
                f'<circle cx="{_n(shape.cx)}" cy="{_n(shape.cy)}" r="{_n(shape.r)}" fill="{shape.fill}"'
                f' stroke="{shape.stroke}" stroke-width="{_n(shape.width)}"{_entity_attrs(frame, shape.entity)}/>'
            )
        elif isinstance(shape, ImageShape):
            clip_count += 1
            cx = shape.x + shape.size / 2
            cy = shape.y + shape.size / 2
            opacity = f' opacity="{_n(shape.opacity)}"' if shape.opacity < 1 else ""
            body.append(
                f'<clipPath id="clip-{clip_count}"><circle cx="{_n(cx)}" cy="{_n(cy)}"'
                f' r="{_n(shape.clip_radius)}"/></clipPath>'
            )
            body.append(
                f'<image x="{_n(shape.x)}" y="{_n(shape.y)}" width="{_n(shape.size)}" height="{_n(shape.size)}"'
                f' href="{_esc(shape.href)}" clip-path="url(#clip-{clip_count})"{opacity}'
                f'{_entity_attrs(frame, shape.entity)}/>'
            )

    css_class = "fab-chart empty" if frame.empty else "fab-chart"
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" class="{css_class}" width="{frame.width}"'
        f' height="{frame.height}" viewBox="0 0 {frame.width} {frame.height}">\n'
        f"{GLOW_FILTER}\n"
        + "\n".join(body)
        + "\n</svg>\n"
    )


def write_svg(frame: ChartFrame, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(frame_to_svg(frame))
    return output_path
