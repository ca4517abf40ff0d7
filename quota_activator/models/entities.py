from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

SECONDS_PER_DAY = 24 * 3600


class SchedulerState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    FIRING = "firing"
    CANCELLED = "cancelled"


@dataclass(frozen=True, order=True)
class TimeOfDay:
    hour: int
    minute: int

    @property
    def seconds(self) -> int:
        return self.hour * 3600 + self.minute * 60

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class ScheduleSpec:
    interval_hours: int
    target_times: Tuple[str, ...]  # "HH:MM" strings as configured, duplicates kept
    safety_buffer_seconds: int = 60


@dataclass(frozen=True)
class Trigger:
    target_time: Optional[str]  # None only for the fallback trigger
    trigger_instant: datetime


@dataclass(frozen=True)
class QuotaWindow:
    start: TimeOfDay
    end: TimeOfDay


@dataclass(frozen=True)
class ActionOutcome:
    success: bool
    reason: Optional[str] = None
    attempts: int = 1

    @classmethod
    def ok(cls, attempts: int = 1) -> "ActionOutcome":
        return cls(success=True, attempts=attempts)

    @classmethod
    def failure(cls, reason: str, attempts: int = 1) -> "ActionOutcome":
        return cls(success=False, reason=reason, attempts=attempts)
