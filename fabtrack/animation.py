"""Replay controller: plays reconstructed timelines back over wall-clock time.

The controller is a small state machine (idle / playing / paused) driven by
a host-provided frame scheduler. It never blocks: every frame is a callback
the host fires, and at most one frame request is outstanding at a time.
Every frame is recomputed from the loaded timelines plus the current
filters, focus and progress, so a stale or duplicate callback can't corrupt
anything.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from fabtrack.config import Config
from fabtrack.highlight import HighlightLayer
from fabtrack.models import (
    ALL_GROUPS,
    AnimationState,
    EntityKey,
    GroupSnapshot,
    StatusScope,
    Timeline,
)
from fabtrack.output.chart import ChartFrame, render_chart
from fabtrack.timeline import (
    active_horizon,
    assign_colors,
    build_season,
    season_horizon,
    value_ceiling,
)
from fabtrack.view_filter import filter_view

logger = logging.getLogger(__name__)

Surface = Callable[[ChartFrame], None]
Clock = Callable[[], float]


class FrameScheduler(Protocol):
    """Whatever drives the host's render loop."""

    def request_frame(self, callback: Callable[[], None]) -> int: ...

    def cancel_frame(self, token: int) -> None: ...


class ManualScheduler:
    """Frame scheduler that only fires when told to.

    Used for offline export and tests; ``run_frame`` plays the role of one
    pass of the host's render loop.
    """

    def __init__(self) -> None:
        self._next_token = 0
        self._pending: dict[int, Callable[[], None]] = {}
        self.cancelled: list[int] = []

    def request_frame(self, callback: Callable[[], None]) -> int:
        self._next_token += 1
        self._pending[self._next_token] = callback
        return self._next_token

    def cancel_frame(self, token: int) -> None:
        if self._pending.pop(token, None) is not None:
            self.cancelled.append(token)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def run_frame(self) -> int:
        """Fire every callback queued before this call. Returns how many ran."""
        batch = list(self._pending.items())
        self._pending.clear()
        for _token, callback in batch:
            callback()
        return len(batch)


class ManualClock:
    """Millisecond clock that moves only when advanced."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


def _clamp(progress: float) -> float:
    return max(0.0, min(1.0, progress))


class AnimationController:
    """Owns everything that changes while the chart is on screen.

    Filters, focus, state and progress live here and nowhere else; the
    loaded timelines and their colors are fixed for the controller's life.
    """

    def __init__(
        self,
        timelines: Sequence[Timeline],
        config: Config,
        scheduler: FrameScheduler,
        surface: Surface | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.timelines: tuple[Timeline, ...] = tuple(timelines)
        self.scheduler = scheduler
        self.surface = surface
        self.clock: Clock = clock or _monotonic_ms
        self.duration_ms = float(config.replay.duration_ms)

        self.colors: dict[EntityKey, str] = assign_colors(self.timelines, config.chart.palette)
        self.season_horizon = season_horizon(self.timelines, config.season.max_periods)
        self.active_horizon = active_horizon(self.timelines)
        self.value_ceiling = value_ceiling(self.timelines)

        self.highlight = HighlightLayer()
        self.group_scope: str = ALL_GROUPS
        self.status_scope: StatusScope = StatusScope.ALL

        self.state = AnimationState.IDLE
        self.progress = 1.0
        self.completed_runs = 0
        self.last_frame: ChartFrame | None = None

        self._start_time = 0.0
        self._frame_seq = 0
        self._pending: tuple[int, int] | None = None  # (frame seq, scheduler token)
        self._disposed = False

    @classmethod
    def create(
        cls,
        snapshots: Iterable[GroupSnapshot],
        config: Config,
        scheduler: FrameScheduler,
        surface: Surface | None = None,
        clock: Clock | None = None,
    ) -> "AnimationController":
        """Build timelines for a fresh load and show the static chart."""
        timelines = build_season(snapshots, config.season)
        controller = cls(timelines, config, scheduler, surface=surface, clock=clock)
        logger.info(
            "Loaded %d timelines (horizon %.2f, active horizon %.2f)",
            len(timelines), controller.season_horizon, controller.active_horizon,
        )
        controller.render()
        return controller

    def dispose(self) -> None:
        """Cancel any outstanding frame and stop responding to callbacks."""
        self._cancel_pending()
        self.state = AnimationState.IDLE
        self.surface = None
        self._disposed = True

    # --- Views ---

    def visible(self) -> list[Timeline]:
        return filter_view(self.timelines, self.group_scope, self.status_scope)

    def current_frame(self) -> ChartFrame:
        return render_chart(
            self.visible(),
            self.progress,
            colors=self.colors,
            highlight=self.highlight,
            season_horizon=self.season_horizon,
            active_horizon=self.active_horizon,
            value_ceiling=self.value_ceiling,
            chart=self.config.chart,
        )

    def render(self) -> ChartFrame:
        frame = self.current_frame()
        self.last_frame = frame
        if self.surface is not None:
            self.surface(frame)
        return frame

    # --- Lifecycle entry points ---

    def start(self) -> bool:
        """Replay from the beginning. Ignored unless idle."""
        if self._disposed or self.state != AnimationState.IDLE:
            logger.debug("start() ignored in state %s", self.state.value)
            return False
        self._play_from(0.0)
        return True

    def pause(self, at_progress: float | None = None) -> bool:
        if self._disposed or self.state != AnimationState.PLAYING:
            return False
        self._cancel_pending()
        if at_progress is not None:
            self.progress = _clamp(at_progress)
        if self.progress >= 1.0:
            # Scrubbed to the end: the run is over, not paused
            self._finish()
            return True
        self.state = AnimationState.PAUSED
        logger.debug("Paused at %.3f", self.progress)
        self.render()
        return True

    def resume(self, from_progress: float | None = None) -> bool:
        """Continue from ``from_progress`` (scrub) or where we paused."""
        if self._disposed or self.state == AnimationState.PLAYING:
            return False
        if from_progress is None:
            from_progress = self.progress if self.state == AnimationState.PAUSED else 0.0
        self._play_from(from_progress)
        return True

    def on_filter_change(
        self,
        group_scope: str | None = None,
        status_scope: StatusScope | str | None = None,
    ) -> None:
        # Reject a bad status before changing either filter
        new_status = StatusScope(status_scope) if status_scope is not None else self.status_scope
        if group_scope is not None:
            self.group_scope = group_scope
        self.status_scope = new_status
        if self._disposed:
            return
        if self.state == AnimationState.PLAYING:
            # Restart the loop against the new view without losing progress
            self._play_from(self.progress)
        else:
            self.render()

    def set_focus(self, key: EntityKey | None) -> bool:
        """Hover enter (key) or leave (None).

        While playing, the next frame picks the new focus up on its own.
        """
        changed = self.highlight.set_focus(key)
        if changed and not self._disposed and self.state != AnimationState.PLAYING:
            self.render()
        return changed

    # --- Frame loop ---

    def _play_from(self, progress: float) -> None:
        self._cancel_pending()
        self.progress = _clamp(progress)
        self.state = AnimationState.PLAYING
        self._start_time = self.clock() - self.progress * self.duration_ms
        logger.debug("Playing from %.3f", self.progress)
        self._advance()

    def _schedule(self) -> None:
        self._frame_seq += 1
        seq = self._frame_seq
        token = self.scheduler.request_frame(lambda: self.tick(seq))
        self._pending = (seq, token)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.scheduler.cancel_frame(self._pending[1])
            self._pending = None

    def tick(self, seq: int) -> None:
        """Frame callback. Anything but the one outstanding request is ignored."""
        if self._disposed or self.state != AnimationState.PLAYING:
            return
        if self._pending is None or self._pending[0] != seq:
            logger.debug("Ignoring stale frame %d", seq)
            return
        self._pending = None
        self._advance()

    def _advance(self) -> None:
        if self.duration_ms > 0:
            elapsed = self.clock() - self._start_time
            progress = _clamp(elapsed / self.duration_ms)
        else:
            progress = 1.0
        self.progress = max(self.progress, progress)

        if self.progress >= 1.0:
            self._finish()
            return
        self.render()
        # The surface may have paused or disposed us mid-render
        if self.state == AnimationState.PLAYING and self._pending is None:
            self._schedule()

    def _finish(self) -> None:
        self.progress = 1.0
        self.state = AnimationState.IDLE
        self.completed_runs += 1
        logger.debug("Replay complete (%d runs)", self.completed_runs)
        self.render()
