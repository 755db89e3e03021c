"""Hover focus and per-line emphasis."""

import logging
from dataclasses import dataclass

from fabtrack.models import EntityKey, Timeline

logger = logging.getLogger(__name__)

CHOPPED_COLOR = "#999"
CHOPPED_FILL = "#ccc"
BASE_WIDTH = 3
FOCUS_WIDTH = 4
DIMMED_OPACITY = 0.4
CHOPPED_OPACITY = 0.3
CHOPPED_FOCUS_OPACITY = 0.6


@dataclass(frozen=True)
class LineStyle:
    color: str
    width: float
    opacity: float
    glow: bool = False


def is_chopped_at(timeline: Timeline, position: float) -> bool:
    """True once the replay has reached the team's elimination period."""
    return bool(
        timeline.eliminated
        and timeline.eliminated_period
        and position >= timeline.eliminated_period
    )


class HighlightLayer:
    """Holds at most one focused team."""

    def __init__(self) -> None:
        self.focused: EntityKey | None = None

    def set_focus(self, key: EntityKey | None) -> bool:
        """Set (or clear, with None) the focused team. Returns True if it changed."""
        if key == self.focused:
            return False
        logger.debug("Focus %s -> %s", self.focused, key)
        self.focused = key
        return True

    def clear(self) -> bool:
        return self.set_focus(None)

    def is_focused(self, key: EntityKey) -> bool:
        return self.focused == key

    def style_for(
        self, timeline: Timeline, color: str, chopped: bool, focus_shown: bool = True,
    ) -> LineStyle:
        """Line style for one team.

        ``focus_shown`` is False when the focused team is filtered out of the
        view; nothing is dimmed then.
        """
        focused = self.is_focused(timeline.key)
        if chopped:
            opacity = CHOPPED_FOCUS_OPACITY if focused else CHOPPED_OPACITY
        elif self.focused is not None and focus_shown and not focused:
            opacity = DIMMED_OPACITY
        else:
            opacity = 1.0
        return LineStyle(
            color=CHOPPED_COLOR if chopped else color,
            width=FOCUS_WIDTH if focused else BASE_WIDTH,
            opacity=opacity,
            glow=focused,
        )
