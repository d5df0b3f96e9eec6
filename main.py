import argparse
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from config import get_settings_for_environment
from errors import BankMonitorError
from logging_config import configure_logging
from models import TransactionEvent
from runner import Runner

logger = structlog.get_logger()


def print_event(event: TransactionEvent) -> None:
    print(event.describe(), flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bank-monitor",
        description="Depositor and withdrawer threads sharing one account balance",
    )
    parser.add_argument(
        "--env",
        choices=["development", "production", "testing"],
        default="development",
        help="Settings profile (default: development)",
    )
    parser.add_argument("--initial-balance", type=int, help="Starting balance")
    parser.add_argument("--min-amount", type=int, help="Smallest random amount (inclusive)")
    parser.add_argument("--max-amount", type=int, help="Largest random amount (inclusive)")
    parser.add_argument("--deposit-interval", type=float, help="Seconds between deposits")
    parser.add_argument("--duration", type=float, help="Run time in seconds")
    parser.add_argument(
        "--until-complete",
        action="store_true",
        help="Ignore duration and run until both iteration caps are reached",
    )
    parser.add_argument("--deposits", type=int, dest="deposit_iterations", help="Number of deposits")
    parser.add_argument("--withdrawals", type=int, dest="withdraw_iterations", help="Number of withdrawals")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument("--unfair-lock", action="store_true", help="Use a plain lock instead of the FIFO lock")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-format", choices=["json", "text"], help="Log output format")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {
        name: getattr(args, name)
        for name in (
            "initial_balance",
            "min_amount",
            "max_amount",
            "deposit_interval",
            "duration",
            "deposit_iterations",
            "withdraw_iterations",
            "seed",
            "log_level",
            "log_format",
        )
        if getattr(args, name) is not None
    }
    if args.until_complete:
        overrides["duration"] = None
    if args.unfair_lock:
        overrides["fair_lock"] = False

    try:
        settings = get_settings_for_environment(args.env, **overrides)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)

    try:
        report = Runner(settings, reporter=print_event).run()
    except BankMonitorError as e:
        logger.error("Run failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        return 1

    print(report.describe(), flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
