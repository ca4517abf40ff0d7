from datetime import datetime, timedelta

import pytest

from quota_activator.engine.cancellation import CancellationToken
from quota_activator.models.entities import ActionOutcome, ScheduleSpec
from quota_activator.platforms.base import TriggerAction


@pytest.fixture
def three_targets():
    """Non-conflicting schedule: 5h quota, three targets 5h apart."""
    return ScheduleSpec(
        interval_hours=5,
        target_times=("09:00", "14:00", "19:00"),
        safety_buffer_seconds=60,
    )


@pytest.fixture
def conflicting_targets():
    """18:00 triggers at 13:00, inside the window 14:00 opens at 09:00."""
    return ["14:00", "18:00"]


@pytest.fixture
def valid_config_data():
    return {
        "scheduler": {
            "interval_hours": 5,
            "target_times": ["09:00", "14:00", "19:00"],
            "safety_buffer_seconds": 60,
        },
        "platform": {
            "type": "anthropic",
            "base_url": "https://api.anthropic.com",
            "options": {"api_key": "sk-test", "max_retries": 2},
        },
    }


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingAction(TriggerAction):
    """Trigger action that records calls and runs an optional hook per call."""

    name = "recording"

    def __init__(self, outcome=None, on_perform=None, delay: float = 0.0):
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.outcome = outcome or ActionOutcome.ok()
        self.on_perform = on_perform
        self.delay = delay

    async def perform(self, token: CancellationToken) -> ActionOutcome:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await token.wait(self.delay)
            if self.on_perform:
                self.on_perform(self, token)
        finally:
            self.in_flight -= 1
        return self.outcome

    def validate_config(self) -> None:
        pass


@pytest.fixture
def fake_clock():
    return FakeClock(datetime(2025, 2, 19, 16, 0, 0))
