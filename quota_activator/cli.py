"""
Quota-Activator command line.

Usage:
    quota-activator run                  # Validate config and run the loop
    quota-activator validate             # Check config and exit
    quota-activator preview --count 10   # Print upcoming triggers
    quota-activator serve                # HTTP status API (uvicorn)
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime
from typing import List, Optional

import uvicorn

from quota_activator.config.settings import get_settings
from quota_activator.engine.calculator import upcoming_triggers
from quota_activator.engine.cancellation import CancellationToken
from quota_activator.engine.scheduler import TIMESTAMP_FORMAT
from quota_activator.models.exceptions import QuotaActivatorError
from quota_activator.runtime import build_scheduler, load_validated_config
from quota_activator.utils.logging_config import setup_logging

logger = logging.getLogger("quota_activator.cli")


def install_signal_handlers(token: CancellationToken) -> None:
    loop = asyncio.get_running_loop()

    def _on_signal(signum):
        logger.info("Shutdown signal received (%s), stopping...", signal.Signals(signum).name)
        token.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _on_signal, signum)
        except (NotImplementedError, RuntimeError):
            # Windows event loops lack add_signal_handler
            signal.signal(signum, lambda s, _frame: loop.call_soon_threadsafe(_on_signal, s))


async def run_scheduled(config_path: str) -> int:
    config = load_validated_config(config_path)
    scheduler = build_scheduler(config)
    token = CancellationToken()
    install_signal_handlers(token)
    await scheduler.run(token)
    logger.info("Quota-Activator stopped")
    return 0


def cmd_run(args) -> int:
    return asyncio.run(run_scheduled(args.config))


def cmd_validate(args) -> int:
    config = load_validated_config(args.config)
    print(f"OK: {len(config.scheduler.target_times)} target time(s), "
          f"interval {config.scheduler.interval_hours}h, "
          f"buffer {config.scheduler.safety_buffer_seconds}s, "
          f"platform {config.platform.type}")
    return 0


def cmd_preview(args) -> int:
    config = load_validated_config(args.config)
    spec = config.scheduler.to_spec()
    upcoming = upcoming_triggers(
        datetime.now(),
        spec.target_times,
        spec.interval_hours,
        spec.safety_buffer_seconds,
        args.count,
    )
    for trigger, reference_date in upcoming:
        print(f"{trigger.trigger_instant.strftime(TIMESTAMP_FORMAT)}  ->  "
              f"{trigger.target_time} on {reference_date.isoformat()}")
    return 0


def cmd_serve(args) -> int:
    settings = get_settings()
    uvicorn.run("quota_activator.main:app", host=settings.api_host, port=settings.api_port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="quota-activator", description="Keep quota windows fresh at target times")
    parser.add_argument("-c", "--config", default=settings.config_path, help="Path to config.yaml")
    parser.add_argument("--log-level", default=None, help="Override QA_LOG_LEVEL")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="Run the scheduling loop (default)").set_defaults(func=cmd_run)
    sub.add_parser("validate", help="Validate configuration and exit").set_defaults(func=cmd_validate)
    preview = sub.add_parser("preview", help="Show upcoming triggers")
    preview.add_argument("-n", "--count", type=int, default=settings.preview_count)
    preview.set_defaults(func=cmd_preview)
    sub.add_parser("serve", help="Serve the HTTP status API").set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    func = getattr(args, "func", cmd_run)
    try:
        return func(args)
    except QuotaActivatorError as e:
        logger.error("Invalid config: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
