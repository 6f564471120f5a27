"""Configuration models."""

from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# (upper bound on lines changed, hours); first matching bound wins
Tier = Tuple[int, float]


def _first_day_tiers() -> List[Tier]:
    return [
        (10, 0.5),
        (30, 1.0),
        (80, 1.5),
        (150, 2.5),
        (300, 3.5),
        (500, 4.5),
        (800, 6.0),
        (1500, 8.0),
    ]


def _untracked_tiers() -> List[Tier]:
    return [
        (0, 0.5),
        (20, 1.0),
        (80, 2.0),
        (200, 3.0),
        (500, 4.5),
    ]


def _follow_up_steps() -> List[Tier]:
    # Lines strictly above the bound raise the estimate to the given hours.
    return [
        (50, 1.0),
        (150, 1.5),
        (300, 2.0),
    ]


def _type_multipliers() -> Dict[str, float]:
    return {
        "clean": 0.25,
        "fix": 0.7,
        "build": 0.4,
        "version": 0.2,
        "refactor": 1.2,
        "test": 1.1,
        "feature": 1.0,
        "infrastructure": 1.4,
        "database": 1.3,
    }


class RepositoryConfig(BaseModel):
    """Configuration for a Git repository to collect commits from."""

    repo_path: Path = Field(..., description="Path to the Git repository")
    branch: str = Field("HEAD", description="Branch or revision to walk")
    issue_prefix: Optional[str] = Field(None, description="Issue key prefix, e.g. ABC for ABC-123")
    author_email: Optional[str] = Field(None, description="Only collect commits by this author email")
    title_length: int = Field(72, gt=0, description="Maximum length of derived task titles")

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "repo_path": "/path/to/repo",
                "branch": "HEAD",
                "issue_prefix": "ABC",
                "author_email": "dev@example.com",
                "title_length": 72,
            }
        }


class EstimationConfig(BaseModel):
    """Tunable constants of the estimation pipeline.

    One instance is passed through every stage, so tests can vary any
    threshold without touching shared state.
    """

    model_config = ConfigDict(frozen=True)

    strategy: Literal["size", "time_delta"] = Field("size", description="Daily estimation strategy")

    # Weekly targets
    target_weekly_hours: float = Field(85.0, gt=0)
    min_weekly_hours: float = Field(75.0, ge=0, description="Lower end of the weekly band in the report footer")
    max_weekly_hours: float = Field(95.0, ge=0, description="Upper end of the weekly band in the report footer")
    full_week_days: int = Field(5, gt=0, description="Working days that earn the full weekly target")

    # Daily limits
    min_hours_per_task: float = Field(0.5, gt=0)
    max_hours_per_task: float = Field(8.0, gt=0)
    max_hours_per_day: float = Field(16.0, gt=0)
    light_day_threshold: float = Field(4.0, ge=0)
    heavy_day_threshold: float = Field(7.0, ge=0)

    # Backfill
    max_backfill_day_gap: int = Field(2, ge=1)
    backfill_min_amount: float = Field(1.5, ge=0)
    backfill_candidate_min_hours: float = Field(2.5, ge=0)
    large_task_lines: int = Field(500, ge=0)
    medium_task_lines: int = Field(300, ge=0)
    large_task_backfill_pct: float = Field(0.40, ge=0, le=1)
    medium_task_backfill_pct: float = Field(0.35, ge=0, le=1)
    small_task_backfill_pct: float = Field(0.30, ge=0, le=1)
    backfill_start_hour: int = Field(9, ge=0, le=23)

    # Weekly scaling
    min_scale_factor: float = Field(0.7, gt=0)
    max_scale_factor: float = Field(1.5, gt=0)
    scale_threshold: float = Field(0.15, ge=0, description="Dead-band around a factor of 1.0")

    # Size tiers
    first_day_tiers: List[Tier] = Field(default_factory=_first_day_tiers)
    first_day_max_hours: float = Field(10.0, description="Hours above the last first-day tier")
    follow_up_base_hours: float = Field(0.5)
    follow_up_steps: List[Tier] = Field(default_factory=_follow_up_steps)
    untracked_tiers: List[Tier] = Field(default_factory=_untracked_tiers)
    untracked_max_hours: float = Field(6.0, description="Hours above the last untracked tier")

    # Complexity bonus
    file_count_bonus_threshold1: int = Field(5, ge=0)
    file_count_bonus_threshold2: int = Field(10, ge=0)
    file_count_bonus: float = Field(0.5, ge=0)

    type_multipliers: Dict[str, float] = Field(default_factory=_type_multipliers)

    # Time-delta strategy
    sleep_gap_threshold_hours: float = Field(4.0, ge=0)
    sleep_hours_per_day: float = Field(4.0, ge=0)
    max_session_hours: float = Field(12.0, gt=0)
    time_over_size_ratio: float = Field(2.5, gt=0)
    time_under_size_ratio: float = Field(0.4, gt=0)
    pull_up_min_size_hours: float = Field(2.0, ge=0)

    # Days before the requested start that are estimated for context
    lookback_days: int = Field(7, ge=0)

    @field_validator("first_day_tiers", "untracked_tiers", "follow_up_steps")
    @classmethod
    def _check_monotonic(cls, tiers: List[Tier]) -> List[Tier]:
        for (bound_a, hours_a), (bound_b, hours_b) in zip(tiers, tiers[1:]):
            if bound_b <= bound_a or hours_b < hours_a:
                raise ValueError("tier tables must have increasing bounds and non-decreasing hours")
        return tiers

    @model_validator(mode="after")
    def _check_bounds(self) -> "EstimationConfig":
        if self.min_hours_per_task > self.max_hours_per_task:
            raise ValueError("min_hours_per_task must not exceed max_hours_per_task")
        if self.min_scale_factor > self.max_scale_factor:
            raise ValueError("min_scale_factor must not exceed max_scale_factor")
        if self.max_hours_per_task > self.max_hours_per_day:
            raise ValueError("max_hours_per_task must not exceed max_hours_per_day")
        return self


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are prefixed with GITSHEET_ (e.g., GITSHEET_ISSUE_PREFIX).
    """

    model_config = SettingsConfigDict(
        env_prefix="GITSHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Commit collection
    issue_prefix: Optional[str] = None
    author_email: Optional[str] = None
    branch: str = "HEAD"

    # Estimation overrides
    strategy: Literal["size", "time_delta"] = "size"
    weekly_target_hours: Optional[float] = None
    max_hours_per_day: Optional[float] = None
    lookback_days: Optional[int] = None

    # Logging
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("GITSHEET_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    def estimation_config(self, **overrides) -> EstimationConfig:
        """Build an EstimationConfig from these settings.

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            EstimationConfig instance
        """
        values = {"strategy": self.strategy}
        if self.weekly_target_hours is not None:
            values["target_weekly_hours"] = self.weekly_target_hours
        if self.max_hours_per_day is not None:
            values["max_hours_per_day"] = self.max_hours_per_day
        if self.lookback_days is not None:
            values["lookback_days"] = self.lookback_days
        values.update({key: value for key, value in overrides.items() if value is not None})
        return EstimationConfig(**values)
