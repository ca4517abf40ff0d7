from datetime import date, datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from pydantic import BaseModel, Field, field_validator

from quota_activator.config.loader import (
    MAX_INTERVAL_HOURS,
    MAX_SAFETY_BUFFER_SECONDS,
    AppConfig,
    load_config,
)
from quota_activator.config.settings import get_settings
from quota_activator.engine.calculator import next_trigger, triggers_for_date, upcoming_triggers
from quota_activator.engine.conflict_validator import find_conflicts
from quota_activator.engine.scheduler import Scheduler
from quota_activator.engine.time_of_day import parse_time_of_day
from quota_activator.graph.conflict_graph import build_conflict_graph
from quota_activator.models.entities import ScheduleSpec, Trigger
from quota_activator.models.exceptions import DuplicateTargetError, InvalidFormat, QuotaActivatorError

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


class TriggerDTO(BaseModel):
    target_time: Optional[str]
    trigger_instant: datetime
    reference_date: Optional[date] = None

    @classmethod
    def from_domain(cls, t: Trigger, reference_date: Optional[date] = None) -> "TriggerDTO":
        return cls(target_time=t.target_time, trigger_instant=t.trigger_instant, reference_date=reference_date)


class TriggerListResponse(BaseModel):
    triggers: List[TriggerDTO]
    interval_hours: int
    safety_buffer_seconds: int


class ScheduleDTO(BaseModel):
    interval_hours: int = Field(..., gt=0, le=MAX_INTERVAL_HOURS)
    target_times: List[str] = Field(..., min_length=1)
    safety_buffer_seconds: int = Field(60, ge=0, le=MAX_SAFETY_BUFFER_SECONDS)

    @field_validator("target_times")
    @classmethod
    def validate_format(cls, v: List[str]):
        """Reject strings that are not HH:MM with valid ranges."""
        for t in v:
            try:
                parse_time_of_day(t)
            except InvalidFormat as e:
                raise ValueError(str(e))
        return v

    def to_domain(self) -> ScheduleSpec:
        return ScheduleSpec(
            interval_hours=self.interval_hours,
            target_times=tuple(self.target_times),
            safety_buffer_seconds=self.safety_buffer_seconds,
        )


class ConflictDTO(BaseModel):
    target_a: str
    target_b: str
    trigger_a: str
    trigger_b: str
    window_start: str
    window_end: str
    interval_hours: int
    duplicate: bool = False
    message: str


class ValidationResponse(BaseModel):
    valid: bool
    conflicts: List[ConflictDTO] = []
    conflict_graph: dict = {}


def get_app_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        try:
            config = load_config(settings.config_path)
            config.scheduler.validate_schedule()
        except QuotaActivatorError as e:
            logger.warning(f"Schedule unavailable: {e}")
            raise HTTPException(status_code=503, detail=f"Schedule unavailable: {e}")
        request.app.state.config = config
    return config


def get_schedule_spec(config: AppConfig = Depends(get_app_config)) -> ScheduleSpec:
    return config.scheduler.to_spec()


def get_scheduler(request: Request) -> Scheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler is not running in this process")
    return scheduler


@router.get("/schedule/next", response_model=TriggerDTO, summary="Next trigger")
def get_next_trigger(
    spec: ScheduleSpec = Depends(get_schedule_spec),
    now: Optional[datetime] = Query(None, description="Reference instant (local, naive); defaults to the server clock"),
):
    """
    Return the first trigger strictly after `now`.

    A trigger exactly at `now` is treated as already fired.
    """
    reference = now.replace(tzinfo=None) if now else datetime.now()
    trigger, reference_date = next_trigger(
        reference, spec.target_times, spec.interval_hours, spec.safety_buffer_seconds
    )
    return TriggerDTO.from_domain(trigger, reference_date)


@router.get("/schedule/triggers", response_model=TriggerListResponse, summary="Triggers for a date")
def get_triggers_for_date(
    spec: ScheduleSpec = Depends(get_schedule_spec),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD; defaults to today"),
):
    """
    List the triggers serving each target time of `date`, in firing order.

    Triggers may fall on the previous calendar day when the interval reaches
    back past midnight.
    """
    day = day or date.today()
    triggers = triggers_for_date(day, spec.target_times, spec.interval_hours, spec.safety_buffer_seconds)
    return {
        "triggers": [TriggerDTO.from_domain(t, day) for t in triggers],
        "interval_hours": spec.interval_hours,
        "safety_buffer_seconds": spec.safety_buffer_seconds,
    }


@router.get("/schedule/upcoming", response_model=TriggerListResponse, summary="Upcoming triggers")
def get_upcoming(
    spec: ScheduleSpec = Depends(get_schedule_spec),
    count: int = Query(settings.preview_count, ge=1, le=100),
    now: Optional[datetime] = Query(None),
):
    reference = now.replace(tzinfo=None) if now else datetime.now()
    upcoming = upcoming_triggers(
        reference, spec.target_times, spec.interval_hours, spec.safety_buffer_seconds, count
    )
    return {
        "triggers": [TriggerDTO.from_domain(t, d) for t, d in upcoming],
        "interval_hours": spec.interval_hours,
        "safety_buffer_seconds": spec.safety_buffer_seconds,
    }


@router.post("/schedule/validate", response_model=ValidationResponse, summary="Validate target times")
def validate_schedule(req: ScheduleDTO):
    """
    Check a candidate schedule for overlapping quota windows.

    **Error Handling:**
    - 422: malformed input, or at least one conflicting pair; `detail`
      lists every conflict with both triggers and the overlapping window
    """
    logger.info(f"Validate request: {len(req.target_times)} targets, interval={req.interval_hours}h")

    try:
        conflicts = find_conflicts(req.target_times, req.interval_hours)
    except InvalidFormat as e:
        raise HTTPException(status_code=422, detail=str(e))

    if conflicts:
        logger.info(f"Schedule rejected: {len(conflicts)} conflicting pair(s)")
        graph = build_conflict_graph(req.target_times, req.interval_hours)
        raise HTTPException(
            status_code=422,
            detail={
                "valid": False,
                "conflicts": [
                    ConflictDTO(
                        **c.to_dict(),
                        duplicate=isinstance(c, DuplicateTargetError),
                        message=str(c),
                    ).model_dump()
                    for c in conflicts
                ],
                "conflict_graph": {k: sorted(v) for k, v in graph.items()},
            },
        )

    return {"valid": True, "conflicts": [], "conflict_graph": {}}


@router.get("/scheduler/status", summary="Scheduler status")
def scheduler_status(scheduler: Scheduler = Depends(get_scheduler)):
    return scheduler.status()
