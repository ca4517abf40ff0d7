import asyncio
import logging
from abc import ABC, abstractmethod

from quota_activator.engine.cancellation import CancellationToken
from quota_activator.models.entities import ActionOutcome
from quota_activator.models.exceptions import ActionFailure

logger = logging.getLogger(__name__)


class TriggerAction(ABC):
    """
    Abstract base class for quota trigger actions.
    Extend this to support another platform.
    """

    name: str = "base"

    @abstractmethod
    async def perform(self, token: CancellationToken) -> ActionOutcome:
        """
        Fire one trigger. Never raises for ordinary failures; returns
        ActionOutcome.failure(reason) instead.
        """

    @abstractmethod
    def validate_config(self) -> None:
        """Raise ConfigurationError if platform-specific options are unusable."""


class RetryingAction(TriggerAction):
    """
    Trigger action with a bounded retry policy.

    Subclasses implement `attempt()`, which raises ActionFailure. Attempts are
    retried `max_retries` times with a doubling delay. Cancellation ends both
    a retry sleep and an attempt still in flight.
    """

    def __init__(self, max_retries: int = 0, retry_base_delay: float = 1.0):
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    @abstractmethod
    async def attempt(self) -> None:
        pass

    def retry_delay(self, attempt: int) -> float:
        return self.retry_base_delay * (2 ** (attempt - 1))

    async def perform(self, token: CancellationToken) -> ActionOutcome:
        last_error = None
        attempts = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.retry_delay(attempt)
                logger.info("[%s] Retry attempt %d/%d in %.1fs", self.name, attempt, self.max_retries, delay)
                if await token.wait(delay):
                    return ActionOutcome.failure("cancelled before retry", attempts=attempts)
            elif token.cancelled:
                return ActionOutcome.failure("cancelled", attempts=attempts)

            attempts += 1
            try:
                if await self._attempt_until_cancelled(token):
                    logger.warning("[%s] Attempt %d cancelled in flight", self.name, attempts)
                    return ActionOutcome.failure("cancelled", attempts=attempts)
                return ActionOutcome.ok(attempts=attempts)
            except ActionFailure as e:
                last_error = e
                logger.warning("[%s] Attempt %d failed: %s", self.name, attempts, e)

        return ActionOutcome.failure(
            f"trigger failed after {attempts} attempts: {last_error}",
            attempts=attempts,
        )

    async def _attempt_until_cancelled(self, token: CancellationToken) -> bool:
        """Run one attempt raced against `token`; return True if cancellation won."""
        attempt_task = asyncio.ensure_future(self.attempt())
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({attempt_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (attempt_task, cancel_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(attempt_task, cancel_task, return_exceptions=True)

        if attempt_task.cancelled():
            return True
        attempt_task.result()
        return False
