"""
BroadbandBoost - Main Entry Point

Command line entry point for upgrade eligibility queries, topology lookups
and offer recording. Results are printed to stdout as JSON; logs go to
stderr and the rotating log file.
"""

import argparse
import json
import logging
import sys
from contextlib import ExitStack
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from broadband_boost.eligibility.filters import FilterCriteria
from broadband_boost.engine import EligibilityEngine
from broadband_boost.errors import DataUnavailableError, ValidationError
from broadband_boost.models.facts import EligibilityReport
from broadband_boost.repositories.memory import InMemoryRepository
from broadband_boost.repositories.snowflake_repository import (
    SnowflakeConnection,
    SnowflakeRepository
)
from broadband_boost.utils.config import Config
from broadband_boost.utils.logging_config import LogContext, setup_logging
from broadband_boost.views.eligibility_views import EligibilityViews


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_VALIDATION = 2
EXIT_INTERRUPTED = 130


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv)

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        description="BroadbandBoost - Broadband Upgrade Eligibility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Eligible customers from CSV extracts
  python -m broadband_boost.main --evaluate --data-dir data

  # Filter to one device, usage of at least 80%
  python -m broadband_boost.main --evaluate --device-id OLT-001 --min-usage 80

  # Topology view of a device from Snowflake
  python -m broadband_boost.main --topology OLT-001 --snowflake

  # Second page of 50, highest usage first
  python -m broadband_boost.main --evaluate --sort usage --order desc --page 2 --page-size 50

  # Record offers for two customers
  python -m broadband_boost.main --record-offer C-100 C-200
        """
    )

    # Operation modes (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        "--evaluate",
        action="store_true",
        help="List customers eligible for a speed upgrade"
    )
    mode_group.add_argument(
        "--topology",
        metavar="DEVICE",
        help="Show topology, rollups and capacity notes for a device"
    )
    mode_group.add_argument(
        "--record-offer",
        nargs="+",
        metavar="ID",
        help="Record an upgrade offer for the given customer ids"
    )
    mode_group.add_argument(
        "--devices",
        action="store_true",
        help="List devices with at least one Up link"
    )
    mode_group.add_argument(
        "--technologies",
        action="store_true",
        help="List supported technologies present in the customer base"
    )
    mode_group.add_argument(
        "--customer",
        metavar="ID",
        help="Show a single customer record"
    )

    # Eligibility filters
    parser.add_argument("--device-id", help="Only customers on this device")
    parser.add_argument("--technology", help="Only customers on this technology")
    parser.add_argument("--min-usage", help="Minimum average usage percentage (0-100)")
    parser.add_argument(
        "--offered-within-days",
        help="Only customers offered within the last N days (replaces the promo cooldown)"
    )
    parser.add_argument("--min-speed", help="Minimum current download speed in Mbps")
    parser.add_argument(
        "--exact-speed",
        action="store_true",
        help="Match --min-speed exactly instead of as a lower bound"
    )
    parser.add_argument(
        "--as-of",
        help="Evaluation date in ISO format (defaults to today)"
    )

    # Result views (--evaluate only)
    parser.add_argument(
        "--sort",
        help="Re-sort by rank, utilization, usage, speed, device, customer or name"
    )
    parser.add_argument("--order", help="Sort direction: asc or desc")
    parser.add_argument("--page", help="1-based page number")
    parser.add_argument(
        "--page-size",
        help=f"Results per page (1-{EligibilityViews.MAX_PAGE_SIZE}, default "
             f"{EligibilityViews.DEFAULT_PAGE_SIZE})"
    )
    parser.add_argument(
        "--group-by-device",
        action="store_true",
        help="Also group the returned results by access device"
    )

    # Data source options
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--data-dir",
        help="Directory of CSV extracts (defaults to DATA_DIR)"
    )
    source_group.add_argument(
        "--snowflake",
        action="store_true",
        help="Read from and write to Snowflake"
    )

    # Output options
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Log the rule that excluded each customer to the log file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args(argv)


def build_criteria(args: argparse.Namespace) -> FilterCriteria:
    """
    Build filter criteria from CLI arguments.

    Raises:
        ValidationError: If a filter value is malformed or out of range
    """
    return FilterCriteria.from_params({
        "device_id": args.device_id,
        "technology": args.technology,
        "min_usage_percentage": args.min_usage,
        "offered_within_days": args.offered_within_days,
        "min_current_speed_mbps": args.min_speed,
        "exact_speed_match": args.exact_speed
    })


def parse_as_of(value: Optional[str]):
    """Parse the --as-of date, or None when not given."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError as error:
        raise ValidationError("as_of", f"invalid date '{value}'") from error


def parse_int(field: str, value: Optional[str], default: int) -> int:
    """Parse an integer CLI option, or the default when not given."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValidationError(field, f"invalid integer '{value}'") from error


def view_report(args: argparse.Namespace, report: EligibilityReport) -> dict:
    """
    Apply the requested sort, page and grouping to an eligibility report.

    Without any view option the full ranked report is returned.

    Raises:
        ValidationError: If a view option is malformed or out of range
    """
    payload = report.to_dict()
    results = report.results
    views = EligibilityViews()

    if any(value is not None for value in (args.sort, args.order, args.page, args.page_size)):
        sort_field, sort_order = views.parse_sort(args.sort or "rank", args.order or "asc")
        page = views.paginate(
            results,
            page=parse_int("page", args.page, 1),
            page_size=parse_int("page_size", args.page_size, views.DEFAULT_PAGE_SIZE),
            sort_field=sort_field,
            sort_order=sort_order
        )
        payload.update(page.to_dict())
        results = page.items

    if args.group_by_device:
        payload["groups"] = {
            device_id: [result.to_dict() for result in group]
            for device_id, group in views.group_by_device(results).items()
        }

    return payload


def emit(payload: Any) -> None:
    """Print a JSON payload to stdout."""
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def run_command(args: argparse.Namespace, engine: EligibilityEngine) -> Any:
    """
    Execute the requested operation.

    Args:
        args: Parsed arguments
        engine: Configured eligibility engine

    Returns:
        JSON-serializable result
    """
    logger = logging.getLogger(__name__)

    if args.evaluate:
        criteria = build_criteria(args)
        today = parse_as_of(args.as_of)
        if args.explain:
            with LogContext("broadband_boost.eligibility", logging.DEBUG):
                report = engine.evaluate_eligibility(criteria, today)
        else:
            report = engine.evaluate_eligibility(criteria, today)
        logger.info(f"[OK] {report.count} eligible customer(s)")
        return view_report(args, report)

    if args.topology:
        return engine.fetch_topology(args.topology).to_dict()

    if args.record_offer:
        return engine.record_offer(args.record_offer).to_dict()

    if args.devices:
        return {"devices": engine.list_devices()}

    if args.technologies:
        return {"technologies": engine.list_technologies()}

    if args.customer:
        customer = engine.get_customer(args.customer)
        return customer.to_dict() if customer else None

    raise ValueError("No operation requested")


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for BroadbandBoost.

    Returns:
        Exit code (0 success, 1 failure, 2 invalid input, 130 interrupted)
    """
    args = parse_arguments(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logger = logging.getLogger(__name__)

    # Load configuration
    try:
        config = Config()
    except Exception as error:
        setup_logging(level=log_level)
        logger.error(f"[ERROR] Failed to load configuration: {error}")
        return EXIT_FAILURE

    setup_logging(level=log_level, log_dir=config.log_dir)

    logger.info("=" * 60)
    logger.info("BroadbandBoost - Starting")
    logger.info(f"Timestamp: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    try:
        with ExitStack() as stack:
            if args.snowflake:
                connection = stack.enter_context(SnowflakeConnection(config.require_snowflake()))
                repository = SnowflakeRepository(connection)
            else:
                data_dir = Path(args.data_dir) if args.data_dir else config.data_dir
                repository = InMemoryRepository.from_csv_dir(data_dir)

            engine = EligibilityEngine(
                customer_repository=repository,
                topology_repository=repository,
                standards_repository=repository,
                policy=config.policy,
                operational=config.operational
            )
            emit(run_command(args, engine))

    except KeyboardInterrupt:
        logger.warning("[WARN] Operation interrupted by user")
        return EXIT_INTERRUPTED

    except ValidationError as error:
        logger.error(f"[ERROR] Invalid input: {error}")
        return EXIT_VALIDATION

    except DataUnavailableError as error:
        logger.error(f"[ERROR] Data unavailable: {error}")
        return EXIT_FAILURE

    except Exception as error:
        logger.error(f"[ERROR] Operation failed: {error}", exc_info=True)
        return EXIT_FAILURE

    logger.info("[DONE] BroadbandBoost - Complete")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
