"""Pydantic models for the FAB replay engine."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

BID_EVENT_TYPE = "waiver"
COMPLETE_STATUS = "complete"

EntityKey = tuple[str, int]


class StatusScope(str, Enum):
    ALL = "all"
    REMAINING = "remaining"
    CHOPPED = "chopped"


class AnimationState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


ALL_GROUPS = "all"


# --- Upstream records (what the loader produces) ---


class GroupRecord(BaseModel):
    group_id: str
    name: str = ""
    cap: float = 0.0


class RosterRecord(BaseModel):
    """One team's authoritative roster state."""
    entity_id: int
    current_value: float = 0.0
    eliminated: bool = False
    eliminated_period: int | None = None
    display_name: str = "Unknown"
    avatar_ref: str | None = None

    @property
    def initials(self) -> str:
        words = self.display_name.split()[:2]
        return "".join(w[0] for w in words).upper()


class EventRecord(BaseModel):
    """One transaction from the league log."""
    entity_id: int | None = None
    period: int = Field(ge=1)
    bid_amount: float = Field(default=0.0, ge=0)
    status: str
    event_type: str = BID_EVENT_TYPE
    timestamp: int = 0

    @property
    def is_budget_bid(self) -> bool:
        return self.status == COMPLETE_STATUS and self.event_type == BID_EVENT_TYPE


class GroupSnapshot(BaseModel):
    """Everything that was successfully loaded for one group."""
    group: GroupRecord
    roster: list[RosterRecord] = Field(default_factory=list)
    events: list[EventRecord] = Field(default_factory=list)


# --- Reconstructed timelines ---


class TimelinePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: int = Field(ge=0)
    period_progress: float = Field(default=0.0, ge=0.0, le=1.0)
    value: float
    timestamp: int = 0

    @property
    def position(self) -> float:
        """Period position on the x-axis (period plus progress through it)."""
        return self.period + self.period_progress


class RenderOverride(BaseModel):
    """On-screen coordinate that replaces a point's mapped position."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class RenderPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    point: TimelinePoint
    override: RenderOverride | None = None


class Timeline(BaseModel):
    """A team's value-over-time reconstruction. Never mutated in place."""
    model_config = ConfigDict(frozen=True)

    group_id: str
    entity_id: int
    display_name: str = "Unknown"
    avatar_ref: str | None = None
    initials: str = ""
    eliminated: bool = False
    eliminated_period: int | None = None
    cap: float = 0.0
    current_value: float = 0.0
    points: tuple[TimelinePoint, ...] = ()

    @property
    def key(self) -> EntityKey:
        return (self.group_id, self.entity_id)

    @property
    def last_value(self) -> float:
        return self.points[-1].value if self.points else self.cap

    @property
    def max_position(self) -> float:
        return max((p.position for p in self.points), default=0.0)
