from __future__ import annotations
from dataclasses import dataclass, asdict
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class FrictionThresholds:
    # ---------- friction score ----------
    hesitation_divisor_ms: float = 1000.0
    backspace_weight: float = 0.5
    rage_click_weight: float = 2.0
    problematic_score: float = 3.0
    # ---------- issue flags ----------
    high_hesitation_ms: float = 3000.0
    many_backspaces: float = 5.0
    # ---------- recommendations ----------
    clarity_hesitation_ms: float = 5000.0
    validation_correction_rate: float = 0.3
    # ---------- capture ----------
    dropoff_slowdown_factor: float = 1.7
    rage_window_ms: float = 1000.0
    rage_min_clicks: int = 3

    def as_dict(self):
        return asdict(self)


DEFAULT_THRESHOLDS = FrictionThresholds()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FORMFIX_", extra="ignore")

    store: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_key: str = "formfix:metrics"
    log_level: str = "INFO"
    export_dir: Path = Field(default=REPO_ROOT / "data" / "parquet")

    hesitation_divisor_ms: float = DEFAULT_THRESHOLDS.hesitation_divisor_ms
    backspace_weight: float = DEFAULT_THRESHOLDS.backspace_weight
    rage_click_weight: float = DEFAULT_THRESHOLDS.rage_click_weight
    problematic_score: float = DEFAULT_THRESHOLDS.problematic_score
    high_hesitation_ms: float = DEFAULT_THRESHOLDS.high_hesitation_ms
    many_backspaces: float = DEFAULT_THRESHOLDS.many_backspaces
    clarity_hesitation_ms: float = DEFAULT_THRESHOLDS.clarity_hesitation_ms
    validation_correction_rate: float = DEFAULT_THRESHOLDS.validation_correction_rate
    dropoff_slowdown_factor: float = DEFAULT_THRESHOLDS.dropoff_slowdown_factor
    rage_window_ms: float = DEFAULT_THRESHOLDS.rage_window_ms
    rage_min_clicks: int = DEFAULT_THRESHOLDS.rage_min_clicks

    def thresholds(self) -> FrictionThresholds:
        names = FrictionThresholds.__dataclass_fields__.keys()
        return FrictionThresholds(**{n: getattr(self, n) for n in names})


@lru_cache
def get_settings() -> Settings:
    return Settings()
