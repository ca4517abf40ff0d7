import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from quota_activator.config.loader import AppConfig, load_config
from quota_activator.engine.scheduler import Scheduler
from quota_activator.platforms.registry import PlatformRegistry, default_registry

logger = logging.getLogger(__name__)


def load_validated_config(path: Union[str, Path], registry: Optional[PlatformRegistry] = None) -> AppConfig:
    """Load the config file and run every startup check against it."""
    registry = registry or default_registry()
    config = load_config(path)
    config.validate_all(registry.supported())
    logger.info(
        "Config OK: %d target time(s), interval %dh, platform %s",
        len(config.scheduler.target_times),
        config.scheduler.interval_hours,
        config.platform.type,
    )
    return config


def build_scheduler(
    config: AppConfig,
    registry: Optional[PlatformRegistry] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> Scheduler:
    registry = registry or default_registry()
    action = registry.create(config.platform)
    return Scheduler(config.scheduler.to_spec(), action, clock=clock)
