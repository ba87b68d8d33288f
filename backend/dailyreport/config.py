from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_HOUR_HEIGHT = 60
DEFAULT_MAX_HOURS = 36
DEFAULT_START_HOUR = 8
DEFAULT_END_HOUR = 20
DEFAULT_SNAP_MINUTES = 15

RECOMMENDED_SNAP_MINUTES = (1, 5, 10, 15, 30, 60)
RECOMMENDED_HOUR_HEIGHT = (20, 200)

_CAMEL_KEYS = {
    "hourHeight": "hour_height",
    "maxHours": "max_hours",
    "defaultStartHour": "default_start_hour",
    "defaultEndHour": "default_end_hour",
    "snapMinutes": "snap_minutes",
}


def _check_start_hour(value: int) -> int:
    if not 0 <= value <= 23:
        raise ValueError(f"default_start_hour ({value}) must be between 0 and 23")
    return value


def _check_end_hour(value: int) -> int:
    if not 1 <= value <= 24:
        raise ValueError(f"default_end_hour ({value}) must be between 1 and 24")
    return value


def _warn_hour_height(value: int) -> int:
    low, high = RECOMMENDED_HOUR_HEIGHT
    if not low <= value <= high:
        logger.warning("hour_height (%s) is outside the recommended range %s-%s", value, low, high)
    return value


def _warn_snap_minutes(value: int) -> int:
    if value not in RECOMMENDED_SNAP_MINUTES:
        logger.warning(
            "snap_minutes (%s) is not one of the recommended values %s",
            value,
            ", ".join(str(v) for v in RECOMMENDED_SNAP_MINUTES),
        )
    return value


class TimelineConfig(BaseModel):
    """Numeric parameters shared by the slot calculator and the drag engine."""

    model_config = ConfigDict(frozen=True)

    hour_height: int = Field(default=DEFAULT_HOUR_HEIGHT, gt=0)
    max_hours: int = Field(default=DEFAULT_MAX_HOURS, gt=0)
    default_start_hour: int = DEFAULT_START_HOUR
    default_end_hour: int = DEFAULT_END_HOUR
    snap_minutes: int = Field(default=DEFAULT_SNAP_MINUTES, gt=0)

    @field_validator("default_start_hour")
    @classmethod
    def _validate_start_hour(cls, value: int) -> int:
        return _check_start_hour(value)

    @field_validator("default_end_hour")
    @classmethod
    def _validate_end_hour(cls, value: int) -> int:
        return _check_end_hour(value)

    @field_validator("hour_height")
    @classmethod
    def _validate_hour_height(cls, value: int) -> int:
        return _warn_hour_height(value)

    @field_validator("snap_minutes")
    @classmethod
    def _validate_snap_minutes(cls, value: int) -> int:
        return _warn_snap_minutes(value)

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any] | None) -> "TimelineConfig":
        """Build from the editor's ``timeline`` block; unset or null keys fall back."""
        if not value:
            return cls()
        data: dict[str, Any] = {}
        for key, raw in value.items():
            field = _CAMEL_KEYS.get(key, key)
            if field in cls.model_fields and raw is not None:
                data[field] = raw
        return cls(**data)


class Settings(BaseSettings):
    """Engine runtime configuration; the numeric fields feed the timeline and drag defaults."""

    model_config = SettingsConfigDict(env_prefix="DR_", env_file=".env", case_sensitive=False, extra="ignore")

    hour_height: int = DEFAULT_HOUR_HEIGHT
    max_hours: int = DEFAULT_MAX_HOURS
    default_start_hour: int = DEFAULT_START_HOUR
    default_end_hour: int = DEFAULT_END_HOUR
    snap_minutes: int = DEFAULT_SNAP_MINUTES

    default_todo_project: str = "P99"
    report_title: str = "日報"

    @field_validator("hour_height", "max_hours", "snap_minutes")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive number")
        return value

    @field_validator("default_start_hour")
    @classmethod
    def _validate_start_hour(cls, value: int) -> int:
        return _check_start_hour(value)

    @field_validator("default_end_hour")
    @classmethod
    def _validate_end_hour(cls, value: int) -> int:
        return _check_end_hour(value)

    @property
    def timeline(self) -> TimelineConfig:
        return TimelineConfig(
            hour_height=self.hour_height,
            max_hours=self.max_hours,
            default_start_hour=self.default_start_hour,
            default_end_hour=self.default_end_hour,
            snap_minutes=self.snap_minutes,
        )


settings = Settings()
