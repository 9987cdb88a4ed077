"""Command-line interface for the LTV keeper."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from decimal import Decimal, InvalidOperation

from .config import load_config
from .errors import ConfigurationError, KeeperError
from .logging_setup import configure_logging
from .services import Controller, run_until_stopped

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def _percent(value: str) -> Decimal:
    try:
        result = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not Decimal(0) <= result <= Decimal(100):
        raise argparse.ArgumentTypeError(f"must be between 0 and 100: {value}")
    return result


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="ltv-keeper",
        description="Keep an Anchor loan inside a target LTV band",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Print the current LTV and exit")
    sub.add_parser("check", help="Run a single check-and-correct cycle")

    set_parser = sub.add_parser("set-ltv", help="Move the loan to a target LTV now")
    set_parser.add_argument("target", type=_percent, help="Target LTV in percent")

    run_parser = sub.add_parser("run", help="Continuous keeper loop")
    run_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in seconds (overrides config)",
    )

    return parser


async def _serve(controller: Controller, interval: int | None, shutdown_timeout: int) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)
    try:
        return await run_until_stopped(controller, stop, shutdown_timeout, interval)
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit code."""
    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("configuration: %s", e)
        return EXIT_CONFIG

    controller = Controller(config)
    band = config.keeper.band

    try:
        if args.command == "status":
            reading = await controller.status()
            print(
                f"ltv: {reading.ltv:.2f}% "
                f"(loan {reading.loan_amount:,.2f} / limit {reading.borrow_limit:,.2f} UST)"
            )
        elif args.command == "check":
            await controller.evaluate(band.min_ltv, band.max_ltv, band.target_ltv)
        elif args.command == "set-ltv":
            await controller.set_ltv(args.target)
        elif args.command == "run":
            return await _serve(
                controller, args.interval, config.keeper.shutdown_timeout_seconds
            )
        else:
            build_parser().print_help()
            return EXIT_FAILURE
    except KeeperError as e:
        logger.error("%s: %s", args.command, e)
        return EXIT_FAILURE
    return EXIT_OK


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    sys.exit(asyncio.run(_run(args)))
