from typing import Callable, Dict, List

from quota_activator.config.loader import PlatformConfig
from quota_activator.models.exceptions import UnsupportedPlatformError
from quota_activator.platforms.anthropic import AnthropicAction
from quota_activator.platforms.base import TriggerAction

ActionFactory = Callable[[PlatformConfig], TriggerAction]


class PlatformRegistry:
    """
    Registry of trigger actions keyed by platform identifier.
    New platforms register a factory without touching the scheduler.
    """

    def __init__(self):
        self._factories: Dict[str, ActionFactory] = {}

    def register(self, platform_type: str, factory: ActionFactory) -> None:
        self._factories[platform_type] = factory

    def supported(self) -> List[str]:
        return sorted(self._factories)

    def is_supported(self, platform_type: str) -> bool:
        return platform_type in self._factories

    def create(self, config: PlatformConfig) -> TriggerAction:
        """Build the action for `config.type` and validate its options."""
        factory = self._factories.get(config.type)
        if factory is None:
            raise UnsupportedPlatformError(config.type, self.supported())
        action = factory(config)
        action.validate_config()
        return action


def default_registry() -> PlatformRegistry:
    registry = PlatformRegistry()
    registry.register("anthropic", AnthropicAction.from_config)
    return registry
