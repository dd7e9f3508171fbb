"""CLI entry point for socratic-resilience."""

import argparse
import json
import sys
from typing import List, Optional

from .config import ResilienceSettings
from .observability.logging import configure_logging
from .reliability.errors import ConfigurationError
from .reliability.retry import BackoffStrategy, RetryConfig, RetryController


def show_config(settings: ResilienceSettings):
    """Print the effective settings as JSON."""
    print(json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True))


def show_backoff(config: RetryConfig):
    """Print the delay schedule (without jitter) for each retry."""
    controller = RetryController(config)
    print(f"Backoff schedule ({config.backoff_strategy.value}):")
    print("-" * 50)
    for attempt in range(1, config.max_retries + 1):
        delay = min(controller.base_delay_for(attempt), config.max_delay)
        jitter = delay * config.jitter_factor
        print(f"retry {attempt}: {delay:.3f}s (+ up to {jitter:.3f}s jitter)")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Socratic resilience CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('config', help='Show effective settings from the environment')

    backoff_parser = subparsers.add_parser('backoff', help='Show the retry delay schedule')
    backoff_parser.add_argument(
        '--strategy',
        choices=[s.value for s in BackoffStrategy],
        help='Backoff strategy (defaults to SOCRATIC_BACKOFF_STRATEGY)'
    )
    backoff_parser.add_argument('--base-delay', type=float, help='Base delay in seconds')
    backoff_parser.add_argument('--multiplier', type=float, help='Exponential multiplier')
    backoff_parser.add_argument('--max-delay', type=float, help='Delay ceiling in seconds')
    backoff_parser.add_argument('--max-retries', type=int, help='Number of retries to show')

    args = parser.parse_args(argv)

    try:
        settings = ResilienceSettings.from_env()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == 'config':
        show_config(settings)
    elif args.command == 'backoff':
        config = settings.retry_config()
        if args.strategy:
            config.backoff_strategy = BackoffStrategy(args.strategy)
        if args.base_delay is not None:
            config.base_delay = args.base_delay
        if args.multiplier is not None:
            config.backoff_multiplier = args.multiplier
        if args.max_delay is not None:
            config.max_delay = args.max_delay
        if args.max_retries is not None:
            config.max_retries = args.max_retries
        show_backoff(config)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
