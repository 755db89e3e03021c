"""Nudge coincident avatar endpoints apart so every team stays hoverable."""

import math
from collections.abc import Sequence

DEFAULT_THRESHOLD = 5.0
DEFAULT_OFFSET = 5.0
# Horizontal nudge is half the vertical one, giving a diagonal stack.
X_SHARE = 0.5


def declutter(
    candidates: Sequence[tuple[float, float]],
    threshold: float = DEFAULT_THRESHOLD,
    offset: float = DEFAULT_OFFSET,
) -> list[tuple[float, float]]:
    """Return a (dx, dy) offset per candidate, in input order.

    Candidate i is compared (at its running, offset position) against every
    earlier candidate's final position; each near hit on both axes pushes it
    by (offset * 0.5, offset). Passes repeat until nothing moves, so no earlier
    candidate is left within ``threshold`` on both axes. Deterministic for a
    given input order.
    """
    if not (math.isfinite(threshold) and math.isfinite(offset)):
        raise ValueError(f"declutter needs finite threshold and offset, got {threshold}, {offset}")
    placed: list[tuple[float, float]] = []
    offsets: list[tuple[float, float]] = []

    for x, y in candidates:
        dx = dy = 0.0
        if offset > 0:
            moved = True
            while moved:
                moved = False
                for ox, oy in placed:
                    if abs(x + dx - ox) < threshold and abs(y + dy - oy) < threshold:
                        dx += offset * X_SHARE
                        dy += offset
                        moved = True
        offsets.append((dx, dy))
        placed.append((x + dx, y + dy))

    return offsets
