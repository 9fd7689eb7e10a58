"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys

import orjson

from dashboard.config import config, Config
from dashboard.errors import DashboardError
from dashboard.logging_conf import setup_logging
from dashboard.jobs.periods import PERIODS, select_dates
from dashboard.jobs.revenue import build_report

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Publisher admin dashboard backend")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    commands.add_parser("dates", help="List report dates with sales data")

    sales = commands.add_parser("range", help="Reconcile sales for a set of dates")
    sales.add_argument(
        "--dates",
        default=None,
        help="Comma-separated report dates (YYYY/MM/DD)",
    )
    sales.add_argument(
        "--period",
        choices=PERIODS,
        default=None,
        help="Select dates by period instead of --dates",
    )
    sales.add_argument("--from", dest="date_from", default=None, help="Custom period start")
    sales.add_argument("--to", dest="date_to", default=None, help="Custom period end")
    sales.add_argument(
        "--refresh",
        action="store_true",
        help="Hard refresh: clear the sales cache and refetch everything",
    )
    sales.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help=f"Concurrent Steam fetches per wave (default: {config.FETCH_BATCH_SIZE})",
    )

    return parser.parse_args(argv)


def _print_json(data) -> None:
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode() + "\n")


async def run_dates() -> list[str]:
    from dashboard.api.services import build_services

    services = build_services()
    try:
        return await services.financials.list_changed_dates()
    finally:
        await services.aclose()


async def run_range(args: argparse.Namespace) -> dict:
    from dashboard.api.services import build_services

    services = build_services()
    if args.batch_size:
        services.engine.batch_size = max(1, args.batch_size)
    try:
        if args.dates:
            requested = [d for d in args.dates.split(",") if d.strip()]
        else:
            available = await services.financials.list_changed_dates()
            requested = select_dates(available, args.period or "latest", args.date_from, args.date_to)
        logger.info(f"Requested {len(requested)} dates")
        result = await services.engine.reconcile(requested, force_refresh=args.refresh)
        return build_report(result)
    finally:
        await services.aclose()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        import uvicorn
        from dashboard.api.main import app

        try:
            Config.validate(require_financials=False)
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)
        uvicorn.run(app, host=args.host, port=args.port)
        return

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        if args.command == "dates":
            _print_json({"dates": asyncio.run(run_dates())})
        else:
            report = asyncio.run(run_range(args))
            summary = report["summary"]
            logger.info("=" * 60)
            logger.info(f"Dates: {report['dateRange'].get('from')} - {report['dateRange'].get('to')}")
            logger.info(f"Fetched: {report['fetched']} | Cached: {report['cached']} | Failed: {report['failed']}")
            logger.info(f"Gross sales: ${summary['gross_sales']}")
            logger.info(f"Final payout: ${summary['final_payout']}")
            logger.info("=" * 60)
            _print_json(report)
    except DashboardError as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
