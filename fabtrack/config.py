"""Configuration loading for the FAB replay engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class SeasonConfig(BaseModel):
    group_ids: list[str] = Field(default_factory=lambda: [
        "1262120211746656256", "1262120355430928384",
    ])
    # Start of period 1. Period windows are approximate (Wednesday to Wednesday).
    epoch_ms: int = 1_694_649_600_000
    period_length_ms: int = 7 * 24 * 60 * 60 * 1000
    max_periods: int = 18


class ReplayConfig(BaseModel):
    duration_ms: float = 15_000
    gif_fps: int = 20
    gif_hold_ms: int = 1_500


class ChartConfig(BaseModel):
    width: int = 900
    height: int = 600
    margin_top: int = 40
    margin_right: int = 80
    margin_bottom: int = 50
    margin_left: int = 60
    palette: list[str] = Field(default_factory=lambda: [
        "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
        "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B739", "#52B788",
        "#E63946", "#A8DADC", "#457B9D", "#F1FAEE", "#E76F51",
    ])
    value_steps: int = 5
    period_step: int = 2
    declutter_threshold: float = Field(default=5.0, ge=0, allow_inf_nan=False)
    declutter_offset: float = Field(default=5.0, ge=0, allow_inf_nan=False)
    tension_scale: float = 200.0
    avatar_radius: int = 20
    avatar_url_template: str = "https://sleepercdn.com/avatars/thumbs/{ref}"
    x_label: str = "Week"
    y_label: str = "FAB Remaining"

    @property
    def plot_width(self) -> int:
        return self.width - self.margin_left - self.margin_right

    @property
    def plot_height(self) -> int:
        return self.height - self.margin_top - self.margin_bottom


class Config(BaseModel):
    data_dir: str = "data"
    season: SeasonConfig = Field(default_factory=SeasonConfig)
    replay: ReplayConfig = Field(default_factory=ReplayConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)

    @property
    def resolved_data_dir(self) -> Path:
        """Resolve data_dir relative to project root."""
        p = Path(self.data_dir).expanduser()
        if p.is_absolute():
            return p
        return _project_root() / p


def _project_root() -> Path:
    """Return the fabtrack project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
