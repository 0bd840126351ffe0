"""Entry point for the connector command line.

Usage:
    spot-connector --config config/connector.yaml
    spot-connector --exchange gate --pair BTC_USDT --duration 30
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from spot_connector.core.config import ConnectorConfig, load_config
from spot_connector.core.runner import StreamRunner
from spot_connector.exchange.base import ExchangeType


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        handlers=handlers,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Spot exchange order book streamer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--exchange",
        "-e",
        choices=[t.value for t in ExchangeType],
        help="Exchange to use (overrides config)",
    )

    parser.add_argument(
        "--pair",
        "-p",
        type=str,
        action="append",
        help="Pair to stream (can specify multiple)",
    )

    parser.add_argument(
        "--depth",
        type=int,
        help="Order book depth (overrides config)",
    )

    parser.add_argument(
        "--full",
        action="store_true",
        help="Request full snapshots on every push",
    )

    parser.add_argument(
        "--duration",
        "-d",
        type=float,
        help="Seconds to stream before exiting (default: until interrupted)",
    )

    parser.add_argument(
        "--log-level",
        "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Load config and validate without connecting",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ConnectorConfig:
    """Build configuration from file and command line args.

    Args:
        args: Parsed command line arguments

    Returns:
        Merged configuration
    """
    config = load_config(args.config)

    if args.exchange:
        config.exchange.type = ExchangeType(args.exchange)

    if args.pair:
        config.stream.pairs = args.pair

    if args.depth:
        config.stream.depth = args.depth

    if args.full:
        config.stream.full = True

    if args.duration:
        config.stream.duration_seconds = args.duration

    if args.log_level:
        config.log_level = args.log_level

    if args.log_file:
        config.log_file = args.log_file

    # Re-validate so overrides go through the same checks as the file
    return ConnectorConfig.model_validate(config.model_dump())


async def main_async(config: ConnectorConfig) -> int:
    """Async main entry point.

    Args:
        config: Connector configuration

    Returns:
        Exit code
    """
    runner = StreamRunner(config)

    try:
        await runner.run()
        return 0
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = build_config(args)
        credentials = config.exchange.credentials()
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level, config.log_file)

    logger = logging.getLogger(__name__)
    logger.info("Spot connector starting")
    logger.info(f"Exchange: {config.exchange.type.value}")
    logger.info(f"Pairs: {config.stream.pairs}")
    logger.info(f"Authenticated: {credentials is not None}")

    if args.dry_run:
        logger.info("Dry run - configuration valid")
        return 0

    if not config.stream.pairs:
        logger.error("No pairs specified. Use --pair or configure in YAML.")
        return 1

    return asyncio.run(main_async(config))


if __name__ == "__main__":
    sys.exit(main())
