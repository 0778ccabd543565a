"""Command-line entry point for repo-icons."""

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from repo_icons.config.environment import EnvironmentConfig
from repo_icons.config.exceptions import ConfigurationError
from repo_icons.config.loader import load_config
from repo_icons.config.models import AppConfig
from repo_icons.domain.models import LookupOptions, ResultSet
from repo_icons.logging import get_logger
from repo_icons.logging.config import configure_logging
from repo_icons.pipeline.exceptions import (
    InvalidRepositoryReferenceError,
    LookupTimeoutError,
    NoIconsFoundError,
)
from repo_icons.service.factory import build_lookup_service

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_REFERENCE = 2
EXIT_NO_ICONS = 3
EXIT_TIMEOUT = 4


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override.upper()
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-icons",
        description="Discover and rank icons for a repository or website",
    )
    parser.add_argument(
        "reference",
        help="Repository reference: owner/name, a GitHub URL or a website URL",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: repo-icons.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--max-results",
        type=_positive_int,
        default=None,
        help="Return at most N icons",
    )
    parser.add_argument(
        "--exclude-unprobed",
        action="store_true",
        help="Only return icons whose dimensions are known",
    )
    parser.add_argument(
        "--best",
        action="store_true",
        help="Print only the URL of the best icon",
    )
    return parser


async def run_lookup(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    reference: str,
    options: LookupOptions,
) -> ResultSet:
    """Build the service, run one lookup and release its resources."""
    async with build_lookup_service(app_config, env_config) as service:
        return await service.lookup(reference, options)


def render(result: ResultSet, best_only: bool) -> str:
    if best_only:
        return result.best().url
    return json.dumps(result.to_records(), indent=2)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for repo-icons.

    Results go to stdout; logs and error messages go to stderr.

    Returns:
        Exit code: 0 success, 1 configuration or unexpected error,
        2 invalid reference, 3 no icons found, 4 timeout
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.debug(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "config_path": str(args.config) if args.config else None,
                "sources": [s.value for s in app_config.sources.enabled_sources()],
                "readme_images": app_config.sources.github_readme,
                "log_level": env_config.log_level,
            },
        )

        options = LookupOptions(
            include_unprobed=not args.exclude_unprobed,
            max_results=args.max_results,
        )
        result = asyncio.run(run_lookup(app_config, env_config, args.reference, options))

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except InvalidRepositoryReferenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_REFERENCE
    except NoIconsFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        for source, message in sorted(e.source_errors.items()):
            print(f"  {source}: {message}", file=sys.stderr)
        return EXIT_NO_ICONS
    except LookupTimeoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_TIMEOUT
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during lookup",
            extra={
                "event": "cli.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return EXIT_ERROR

    print(render(result, args.best))
    logger.debug(
        "Lookup finished",
        extra={
            "event": "cli.completed",
            "result_count": len(result),
            "duration_seconds": round(time.time() - start_time, 3),
        },
    )
    return EXIT_OK


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
