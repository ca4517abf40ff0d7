"""
Example: Extending Quota-Activator with a custom trigger platform

This example shows how to add a platform whose trigger is a plain HTTP
GET against a health/keep-alive endpoint, and how to run the scheduler with
it.
"""

import asyncio

import httpx

from quota_activator.config.loader import parse_config
from quota_activator.engine.cancellation import CancellationToken
from quota_activator.models.exceptions import ActionFailure, ConfigurationError
from quota_activator.platforms.base import RetryingAction
from quota_activator.platforms.registry import default_registry
from quota_activator.runtime import build_scheduler


# 1. Define a custom trigger action
class PingAction(RetryingAction):
    """Fires a GET request; any 2xx response counts as a fresh quota window."""

    name = "ping"

    def __init__(self, url: str, max_retries: int = 2):
        super().__init__(max_retries=max_retries, retry_base_delay=2.0)
        self.url = url

    @classmethod
    def from_config(cls, config):
        return cls(config.base_url, max_retries=int(config.options.get("max_retries", 2)))

    def validate_config(self) -> None:
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError("base_url must be an http(s) URL")

    async def attempt(self) -> None:
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(self.url)
        except httpx.HTTPError as exc:
            raise ActionFailure(f"request failed: {exc}") from exc
        if not resp.is_success:
            raise ActionFailure(f"unexpected status code: {resp.status_code}", status_code=resp.status_code)


# 2. Register it next to the built-in platforms
registry = default_registry()
registry.register("ping", PingAction.from_config)

# 3. Validate the config against the extended registry
config = parse_config({
    "scheduler": {"interval_hours": 5, "target_times": ["09:00", "14:00", "19:00"]},
    "platform": {"type": "ping", "base_url": "https://example.com/keepalive"},
})
config.validate_all(registry.supported())


# 4. Run until interrupted
async def main():
    scheduler = build_scheduler(config, registry)
    print(scheduler)
    print("Next trigger:", scheduler.next_trigger())
    await scheduler.run(CancellationToken())


if __name__ == "__main__":
    asyncio.run(main())
