"""
Main entry point for the HealthKart Deal Alert system.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from aiohttp import web

from .api import create_app
from .models.config import Configuration
from .orchestrator import AlertScheduler, RemoteAlertTrigger
from .services.config_manager import ConfigurationManager
from .services.service_factory import ServiceFactory
from .utils.error_handling import DealAlertError
from .utils.logging import get_logger, setup_logging


def load_configuration(config_path: Optional[str]) -> Configuration:
    config = ConfigurationManager(config_path).load_config()
    setup_logging(
        log_dir=config.logging.log_dir,
        log_level=config.logging.level,
        log_to_file=config.logging.log_to_file,
    )
    return config


async def run_once(config: Configuration, categories: List[str]) -> Dict[str, Any]:
    """Run one alert cycle for the configured category, or several."""
    factory = ServiceFactory(config)
    async with factory.create_alert_service() as service:
        if len(categories) > 1:
            codes = [config.catalog.resolve_category(c) for c in categories]
            return (await service.execute_multi_category(codes)).to_dict()
        category = categories[0] if categories else None
        result = await service.execute(config.catalog.resolve_category(category))
        return result.to_dict()


async def run_schedule(config: Configuration, api_url: Optional[str]) -> None:
    logger = get_logger("scheduler")
    api_url = api_url or config.scheduler.api_url

    if api_url:
        trigger = RemoteAlertTrigger(api_url)
        if not trigger.check_health():
            logger.warning("API health check failed, continuing anyway", extra={"api_url": api_url})
        cycle = trigger
    else:
        trigger = None

        async def cycle():
            return await run_once(config, config.scheduler.categories)

    scheduler = AlertScheduler(cycle, config.scheduler.interval_minutes)
    try:
        await scheduler.start()
    finally:
        if trigger is not None:
            trigger.close()


async def run_connection_test(config: Configuration) -> bool:
    notifier = ServiceFactory(config).create_notifier()
    try:
        result = await notifier.test_connection()
    finally:
        await notifier.close()

    if result.success:
        print(f"Telegram connection OK (bot @{result.bot_username})")
    else:
        print(f"Telegram connection failed: {result.error}")
    return result.success


def serve(config: Configuration) -> None:
    factory = ServiceFactory(config)
    app = create_app(
        factory.create_alert_service,
        environment=config.scheduler.environment,
        category_resolver=config.catalog.resolve_category,
    )
    web.run_app(app, host=config.scheduler.host, port=config.scheduler.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hk-deal-alert",
        description="Monitor HealthKart supplement deals and send Telegram alerts",
    )
    parser.add_argument("--config", help="Path to a YAML or JSON configuration file")

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run one alert cycle")
    run_parser.add_argument(
        "--category",
        action="append",
        default=[],
        help="Category key or code (repeat for several)",
    )

    subparsers.add_parser("serve", help="Start the HTTP API")

    schedule_parser = subparsers.add_parser("schedule", help="Run alert cycles on a timer")
    schedule_parser.add_argument("--api-url", help="Trigger a deployed API instead of running locally")

    subparsers.add_parser("test-telegram", help="Check Telegram bot connectivity")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "run"

    try:
        config = load_configuration(args.config)

        if command == "run":
            result = asyncio.run(run_once(config, getattr(args, "category", [])))
            print(json.dumps(result, indent=2))
        elif command == "serve":
            serve(config)
        elif command == "schedule":
            asyncio.run(run_schedule(config, args.api_url))
        elif command == "test-telegram":
            if not asyncio.run(run_connection_test(config)):
                return 1

    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    except DealAlertError as e:
        print(f"Error ({e.kind.value}): {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
