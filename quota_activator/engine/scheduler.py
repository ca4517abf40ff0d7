"""
Scheduling loop.

    idle -> waiting(until) -> firing -> waiting(...) -> ... -> cancelled

Every iteration derives the next trigger from the live clock rather than
from the previous trigger, so a loop that wakes late (suspend, clock jump)
still lands on the correct, possibly immediately due, trigger. The action is
awaited inline, so at most one invocation is ever in flight.
"""

import logging
from datetime import date, datetime
from typing import Callable, Dict, Optional

from quota_activator.engine.calculator import next_trigger
from quota_activator.engine.cancellation import CancellationToken
from quota_activator.models.entities import ActionOutcome, ScheduleSpec, SchedulerState, Trigger
from quota_activator.platforms.base import TriggerAction

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Scheduler:
    def __init__(
        self,
        spec: ScheduleSpec,
        action: TriggerAction,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.spec = spec
        self.action = action
        self.clock = clock
        self.state = SchedulerState.IDLE
        self.fired_count = 0
        self.failed_count = 0
        self.last_outcome: Optional[ActionOutcome] = None
        self.last_fired_at: Optional[datetime] = None
        self.pending: Optional[Trigger] = None
        self._running = False

    def next_trigger(self, now: Optional[datetime] = None) -> Trigger:
        trigger, _ = self._calculate(now or self.clock())
        return trigger

    def _calculate(self, now: datetime):
        return next_trigger(
            now,
            self.spec.target_times,
            self.spec.interval_hours,
            self.spec.safety_buffer_seconds,
        )

    async def run(self, token: CancellationToken) -> int:
        """
        Run until `token` is cancelled.

        Returns:
            Number of triggers fired

        Raises:
            RuntimeError: if this scheduler is already running
        """
        if self._running:
            raise RuntimeError("scheduler is already running")
        self._running = True

        logger.info("Scheduler started for platform: %s", self.action.name)
        logger.info(
            "Target times: [%s], Interval: %dh, Safety buffer: %ds",
            ", ".join(self.spec.target_times),
            self.spec.interval_hours,
            self.spec.safety_buffer_seconds,
        )

        fired = 0
        try:
            self.pending, reference_date = self._calculate(self.clock())
            self._log_next("First trigger scheduled at", self.pending, reference_date)

            while not token.cancelled:
                delay = (self.pending.trigger_instant - self.clock()).total_seconds()
                if delay > 0:
                    self.state = SchedulerState.WAITING
                    logger.info("Waiting %ds until next trigger...", round(delay))
                    if await token.wait(delay):
                        break

                self.state = SchedulerState.FIRING
                await self._fire(self.pending, token)
                fired += 1

                self.pending, reference_date = self._calculate(self.clock())
                self._log_next("Next trigger", self.pending, reference_date)
        finally:
            self.state = SchedulerState.CANCELLED
            self._running = False

        logger.info("Scheduler stopped after %d trigger(s)", fired)
        return fired

    async def _fire(self, trigger: Trigger, token: CancellationToken) -> None:
        logger.info(
            "[%s] Triggering quota refresh (for target: %s)...",
            self.action.name,
            trigger.target_time,
        )
        try:
            outcome = await self.action.perform(token)
        except Exception as e:
            logger.exception("[%s] Trigger action raised", self.action.name)
            outcome = ActionOutcome.failure(f"action raised {type(e).__name__}: {e}")

        self.fired_count += 1
        self.last_fired_at = self.clock()
        self.last_outcome = outcome
        if outcome.success:
            logger.info("[SUCCESS] Trigger completed (attempts: %d)", outcome.attempts)
        else:
            self.failed_count += 1
            logger.error("[ERROR] Trigger failed: %s", outcome.reason)

    def _log_next(self, prefix: str, trigger: Trigger, reference_date: date) -> None:
        logger.info(
            "%s: %s (for target: %s on %s)",
            prefix,
            trigger.trigger_instant.strftime(TIMESTAMP_FORMAT),
            trigger.target_time,
            reference_date.isoformat(),
        )

    def status(self) -> Dict:
        upcoming = self.pending if self._running and self.pending else self.next_trigger()
        return {
            "state": self.state.value,
            "platform": self.action.name,
            "running": self._running,
            "next_trigger": {
                "target_time": upcoming.target_time,
                "trigger_instant": upcoming.trigger_instant.isoformat(),
            },
            "fired_count": self.fired_count,
            "failed_count": self.failed_count,
            "last_fired_at": self.last_fired_at.isoformat() if self.last_fired_at else None,
            "last_outcome": None if self.last_outcome is None else {
                "success": self.last_outcome.success,
                "reason": self.last_outcome.reason,
                "attempts": self.last_outcome.attempts,
            },
        }

    def __str__(self) -> str:
        return (
            f"Scheduler{{platform={self.action.name}, interval={self.spec.interval_hours}h, "
            f"targets=[{', '.join(self.spec.target_times)}]}}"
        )
