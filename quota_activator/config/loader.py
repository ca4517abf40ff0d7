"""
YAML configuration loading and validation.

    scheduler:
      interval_hours: 5
      target_times: ["09:00", "14:00", "19:00"]
      safety_buffer_seconds: 60
    platform:
      type: anthropic
      base_url: https://api.anthropic.com
      options:
        api_key: sk-...
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from quota_activator.engine.conflict_validator import validate_target_times
from quota_activator.engine.time_of_day import is_valid_time_format
from quota_activator.models.entities import ScheduleSpec
from quota_activator.models.exceptions import (
    ConfigurationError,
    InvalidFormat,
    UnsupportedPlatformError,
)

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_BUFFER_SECONDS = 60
MAX_INTERVAL_HOURS = 168  # 1 week
MAX_SAFETY_BUFFER_SECONDS = 3600


class SchedulerConfig(BaseModel):
    interval_hours: int = 0
    target_times: List[str] = Field(default_factory=list)
    safety_buffer_seconds: int = DEFAULT_SAFETY_BUFFER_SECONDS

    @field_validator("target_times", mode="before")
    @classmethod
    def coerce_sexagesimal(cls, v):
        """YAML 1.1 reads unquoted 14:00 as the base-60 integer 840."""
        if not isinstance(v, list):
            return v
        return [
            f"{item // 60:02d}:{item % 60:02d}" if isinstance(item, int) and not isinstance(item, bool) else item
            for item in v
        ]

    @field_validator("safety_buffer_seconds", mode="before")
    @classmethod
    def default_buffer(cls, v):
        """Omitted or zero buffer falls back to the default."""
        if v is None or v == 0:
            return DEFAULT_SAFETY_BUFFER_SECONDS
        return v

    def validate_schedule(self) -> None:
        if self.interval_hours <= 0:
            raise ConfigurationError("scheduler.interval_hours must be positive")
        if self.interval_hours > MAX_INTERVAL_HOURS:
            raise ConfigurationError(f"scheduler.interval_hours too large (max {MAX_INTERVAL_HOURS})")
        if not self.target_times:
            raise ConfigurationError("scheduler.target_times is required (at least one time)")
        for t in self.target_times:
            if not is_valid_time_format(t):
                raise InvalidFormat(t)
        if self.safety_buffer_seconds < 0:
            raise ConfigurationError("scheduler.safety_buffer_seconds cannot be negative")
        if self.safety_buffer_seconds > MAX_SAFETY_BUFFER_SECONDS:
            raise ConfigurationError(
                f"scheduler.safety_buffer_seconds too large (max {MAX_SAFETY_BUFFER_SECONDS})"
            )
        validate_target_times(self.target_times, self.interval_hours)

    def to_spec(self) -> ScheduleSpec:
        return ScheduleSpec(
            interval_hours=self.interval_hours,
            target_times=tuple(self.target_times),
            safety_buffer_seconds=self.safety_buffer_seconds,
        )


class PlatformConfig(BaseModel):
    type: str = ""
    base_url: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    @classmethod
    def default_options(cls, v):
        return {} if v is None else v

    def validate_platform(self, supported: Iterable[str]) -> None:
        supported = list(supported)
        if not self.type:
            raise ConfigurationError("platform.type is required")
        if self.type not in supported:
            raise UnsupportedPlatformError(self.type, supported)
        if not self.base_url:
            raise ConfigurationError("platform.base_url is required")


class AppConfig(BaseModel):
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)

    def validate_all(self, supported_platforms: Optional[Iterable[str]] = None) -> None:
        """Run every startup check; the first failure is raised."""
        self.scheduler.validate_schedule()
        if supported_platforms is not None:
            self.platform.validate_platform(supported_platforms)


def parse_config(data: Optional[Dict[str, Any]]) -> AppConfig:
    try:
        return AppConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"failed to parse config: {e}") from e


def load_config(path: Union[str, Path]) -> AppConfig:
    """Read and parse the YAML configuration file (defaults applied, not yet validated)."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse config: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")

    logger.debug("Loaded config from %s", path)
    return parse_config(data)
