#!/usr/bin/env python3
"""Sample lookup harness for end-to-end validation.

This script provides a manual way to validate the repo-icons pipeline
without running pytest. It can operate in two modes:

1. Fixture mode (default): Serves canned raw candidates from a YAML file
2. Real endpoint mode: Queries GitHub and the project website (requires network access)

Usage:
    # Run with fixtures (no network required)
    python scripts/run_sample_lookup.py

    # Run with real endpoints
    REPO_ICONS_REAL_RUN=1 python scripts/run_sample_lookup.py --reference pallets/flask

    # Custom fixtures file
    python scripts/run_sample_lookup.py --fixtures tests/fixtures/sample_lookup/candidates.yaml
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from repo_icons.config.loader import load_config
from repo_icons.logging.config import configure_logging
from repo_icons.pipeline import IconPipeline
from repo_icons.service.factory import build_lookup_service
from repo_icons.service.lookup import parse_repository_reference
from tests.helpers.fixture_adapter import FixtureAdapter, load_fixture_candidates


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(result):
    """Print a formatted summary table of pipeline results."""
    print_header("Pipeline Execution Summary")

    metrics = [
        ("Raw Candidates", result.raw_candidate_count),
        ("Merged Candidates", result.merged_count),
        ("Duplicates Folded", result.duplicate_count),
        ("Candidates Probed", result.probed_count),
        ("Sized By Probing", result.resolved_by_probe_count),
        ("Ranked Results", len(result.candidates)),
        ("Had Errors", "Yes" if result.had_errors else "No"),
        ("Duration (seconds)", f"{result.total_duration_seconds:.2f}"),
    ]

    # Calculate column widths
    max_label_width = max(len(label) for label, _ in metrics)

    print("┌" + "─" * (max_label_width + 2) + "┬" + "─" * 22 + "┐")
    print(f"│ {'Metric':<{max_label_width}} │ {'Value':<20} │")
    print("├" + "─" * (max_label_width + 2) + "┼" + "─" * 22 + "┤")

    for label, value in metrics:
        print(f"│ {label:<{max_label_width}} │ {str(value):<20} │")

    print("└" + "─" * (max_label_width + 2) + "┴" + "─" * 22 + "┘")

    # Per-source breakdown
    if result.source_stats:
        print("\n" + "-" * 80)
        print(" Per-Source Breakdown")
        print("-" * 80 + "\n")

        for stats in result.source_stats:
            print(f"Source: {stats.source.value}")
            print(f"  Candidates: {stats.candidate_count}")
            print(f"  Invalid: {stats.invalid_count}")
            print(f"  Duration: {stats.duration_seconds:.2f}s")
            if stats.error_message:
                print(f"  Error ({stats.error_type}): {stats.error_message}")
            print()


def print_ranking(result):
    """Print the ranked candidates."""
    print_header("Ranked Icons")

    for position, candidate in enumerate(result.candidates, 1):
        size = f"{candidate.width}x{candidate.height}" if candidate.has_dimensions else "?"
        fmt = candidate.format.value if candidate.format else "?"
        print(f"{position:>3}. [{fmt:<7} {size:>9}] {candidate.source.value:<22} {candidate.url}")


async def run_pipeline(args, app_config, env_config, use_real_endpoints):
    service = build_lookup_service(app_config, env_config)
    async with service:
        key = parse_repository_reference(args.reference, app_config.github.web_base_url)
        if use_real_endpoints:
            pipeline = service.pipeline
        else:
            fixtures = load_fixture_candidates(args.fixtures)
            adapters = [FixtureAdapter(source, candidates) for source, candidates in fixtures.items()]
            pipeline = IconPipeline(adapters, probing_enabled=False)
        return await pipeline.run(key)


def main():
    """Main entry point for sample lookup harness."""
    parser = argparse.ArgumentParser(
        description="Run a sample lookup for end-to-end validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--reference",
        default="octo/cat",
        help="Repository reference to look up (default: octo/cat)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: repo-icons.yaml if present)",
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=Path("tests/fixtures/sample_lookup/candidates.yaml"),
        help="Path to fixtures YAML file (default: tests/fixtures/sample_lookup/candidates.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()

    # Check for real endpoint mode
    use_real_endpoints = os.environ.get("REPO_ICONS_REAL_RUN", "0") == "1"

    print_header("repo-icons - Sample Lookup Harness")

    print(f"Reference: {args.reference}")
    print(f"Log level: {args.log_level}")

    if use_real_endpoints:
        print(f"\n⚠️  REAL ENDPOINT MODE ENABLED")
        print(f"   The lookup will make actual HTTP requests to GitHub and the project website.")
        print(f"   Unauthenticated GitHub API calls are rate-limited.")
    else:
        print(f"Fixture mode: {args.fixtures}")
        print(f"\nUsing fixture data (no network requests will be made)")

        if not args.fixtures.exists():
            print(f"\n❌ Error: Fixture file not found: {args.fixtures}")
            print(f"   Run with REPO_ICONS_REAL_RUN=1 to use real endpoints instead.")
            return 1

    try:
        print("\n📋 Loading configuration...")
        app_config, env_config = load_config(args.config)
        env_config.log_level = args.log_level

        configure_logging(
            level=args.log_level,
            format_type=app_config.logging.format,
            environment="validation",
        )
        enabled = app_config.sources.enabled_sources()
        print(f"✓ {len(enabled)} sources enabled: {', '.join(s.value for s in enabled)}")

        print("\n🚀 Executing pipeline...")
        print(f"   Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        result = asyncio.run(run_pipeline(args, app_config, env_config, use_real_endpoints))
        print(f"   Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        print_summary_table(result)
        print_ranking(result)

        if not result.candidates:
            print("\n❌ No icons found")
            return 1
        return 0

    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
