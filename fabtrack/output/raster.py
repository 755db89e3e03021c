"""Pillow rendering of chart frames to images, and the full replay to a GIF.

Curves are flattened to polylines. Avatar images are never fetched here, so
every avatar is drawn as its initials.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw

from fabtrack.animation import AnimationController, ManualClock, ManualScheduler
from fabtrack.config import Config
from fabtrack.models import ALL_GROUPS, AnimationState, EntityKey, GroupSnapshot, StatusScope
from fabtrack.output.chart import (
    ChartFrame,
    CircleShape,
    ImageShape,
    LineShape,
    PathShape,
    TextShape,
)
from fabtrack.output.curves import flatten_path

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)


@dataclass
class ReplayExport:
    output_path: Path
    frame_count: int
    duration_ms: int


def _rgba(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return r, g, b, int(round(255 * max(0.0, min(1.0, opacity))))


def _initials(name: str) -> str:
    return "".join(w[0] for w in name.split()[:2]).upper()


def _draw_text(img: Image.Image, draw: ImageDraw.ImageDraw, s: TextShape, text: str) -> None:
    bbox = draw.textbbox((0, 0), text)
    tw = bbox[2] - bbox[0]
    th = bbox[3] - bbox[1]
    fill = _rgba(s.fill)

    if s.rotate:
        # Rotated labels are drawn on their own tile. SVG rotates about the
        # origin, so (x, y) here is already in rotated space.
        tile = Image.new("RGBA", (tw + 4, th + 4), (0, 0, 0, 0))
        ImageDraw.Draw(tile).text((2, 2), text, fill=fill)
        tile = tile.rotate(-s.rotate, expand=True)
        cx, cy = s.y, -s.x
        img.alpha_composite(tile, (int(cx - tile.width / 2), int(cy - tile.height / 2)))
        return

    if s.anchor == "middle":
        x = s.x - tw / 2
    elif s.anchor == "end":
        x = s.x - tw
    else:
        x = s.x
    draw.text((x, s.y - th), text, fill=fill)


def frame_to_image(frame: ChartFrame) -> Image.Image:
    """Rasterize one frame at its native size."""
    img = Image.new("RGBA", (frame.width, frame.height), BACKGROUND)
    draw = ImageDraw.Draw(img, "RGBA")

    for shape in frame.shapes:
        if isinstance(shape, LineShape):
            draw.line(
                [(shape.x1, shape.y1), (shape.x2, shape.y2)],
                fill=_rgba(shape.stroke), width=max(1, int(shape.width)),
            )
        elif isinstance(shape, PathShape):
            coords = flatten_path(shape.commands)
            if len(coords) < 2:
                continue
            if shape.glow:
                draw.line(coords, fill=_rgba(shape.stroke, 0.35), width=int(shape.width) + 6, joint="curve")
            draw.line(coords, fill=_rgba(shape.stroke, shape.opacity), width=int(shape.width), joint="curve")
        elif isinstance(shape, CircleShape):
            draw.ellipse(
                [(shape.cx - shape.r, shape.cy - shape.r), (shape.cx + shape.r, shape.cy + shape.r)],
                fill=_rgba(shape.fill), outline=_rgba(shape.stroke), width=int(shape.width),
            )
        elif isinstance(shape, ImageShape):
            tip = frame.tooltips.get(shape.entity) if shape.entity else None
            if tip is None:
                continue
            center = TextShape(shape.x + shape.size / 2, shape.y + shape.size / 2 + 4, "", fill="#fff")
            _draw_text(img, draw, center, _initials(tip.name))
        elif isinstance(shape, TextShape):
            _draw_text(img, draw, shape, shape.text)

    return img


def write_png(frame: ChartFrame, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame_to_image(frame).convert("RGB").save(output_path)
    return output_path


def export_replay_gif(
    snapshots: Iterable[GroupSnapshot],
    config: Config,
    output_path: Path,
    *,
    group_scope: str = ALL_GROUPS,
    status_scope: StatusScope | str = StatusScope.ALL,
    focus: EntityKey | None = None,
    fps: int | None = None,
) -> ReplayExport:
    """Play the replay against a manual clock and save every frame to a GIF."""
    fps = fps or config.replay.gif_fps
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    step_ms = 1000 / fps

    scheduler = ManualScheduler()
    clock = ManualClock()
    images: list[Image.Image] = []

    controller = AnimationController.create(snapshots, config, scheduler, clock=clock)
    controller.on_filter_change(group_scope=group_scope, status_scope=status_scope)
    controller.set_focus(focus)
    controller.surface = lambda frame: images.append(frame_to_image(frame).convert("RGB"))

    try:
        controller.start()
        while controller.state == AnimationState.PLAYING:
            clock.advance(step_ms)
            scheduler.run_frame()
    finally:
        controller.dispose()

    if not images:
        raise ValueError("Replay produced no frames")

    durations = [int(step_ms)] * (len(images) - 1) + [config.replay.gif_hold_ms]
    output_path.parent.mkdir(parents=True, exist_ok=True)
    images[0].save(
        output_path,
        save_all=True,
        append_images=images[1:],
        duration=durations,
        loop=0,
    )
    logger.info("Wrote %d frames to %s", len(images), output_path)
    return ReplayExport(output_path=output_path, frame_count=len(images), duration_ms=sum(durations))
