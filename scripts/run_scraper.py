"""Scrape eSIM plans and write them to the catalog.

Runs one provider or all of them over an explicit country list or one of
the scheduled country groups, or reports recent runs.

Usage:
    python scripts/run_scraper.py --provider Airalo --country US --country GB
    python scripts/run_scraper.py --all --group 2
    python scripts/run_scraper.py --provider Holafly --country JP --dry-run
    python scripts/run_scraper.py --status
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

# Add backend to path so we can import esim_compare without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

import structlog

from esim_compare.config import settings
from esim_compare.core.logging import configure_logging
from esim_compare.db.session import build_engine, build_session_factory, create_tables
from esim_compare.db.store import SQLAlchemyPlanStore
from esim_compare.scrapers.factory import ScraperFactory
from esim_compare.scrapers.scraper_service import BatchReport, ScraperService
from esim_compare.scrapers.utils.normalizer import CurrencyNormalizer
from esim_compare.services.run_history_service import RunHistoryService, ScrapeRunReport

logger = structlog.get_logger("run_scraper")


async def run(
    providers: Optional[List[str]],
    countries: List[str],
    dry_run: bool = False,
    init_tables: bool = False,
) -> BatchReport:
    """Wire store, factory and service, then run the batch.

    Args:
        providers: Provider names, or None for every supported provider
        countries: ISO country codes
        dry_run: Scrape without writing
        init_tables: Create missing tables first

    Returns:
        BatchReport for the run
    """
    engine = build_engine(settings)
    try:
        if init_tables:
            await create_tables(engine)
            logger.info("tables_created")

        normalizer = CurrencyNormalizer(
            live_rate_url=settings.EXCHANGE_RATE_API_URL if settings.LIVE_RATES_ENABLED else None,
            timeout=settings.LIVE_RATE_TIMEOUT_SECONDS,
        )

        store = SQLAlchemyPlanStore(build_session_factory(engine))
        factory = ScraperFactory(store, normalizer=normalizer, config=settings)
        service = ScraperService(factory, config=settings, dry_run=dry_run)
        return await service.run_all(countries, providers=providers)
    finally:
        await engine.dispose()


async def status(limit: int = 20) -> ScrapeRunReport:
    """Load recent runs and the last 24h status counts."""
    engine = build_engine(settings)
    try:
        store = SQLAlchemyPlanStore(build_session_factory(engine))
        return await RunHistoryService(store).status_report(limit=limit)
    finally:
        await engine.dispose()


def _print_status(report: ScrapeRunReport) -> None:
    print(f"\n{'='*70}")
    print(f"  Scrape Runs (last {report.window_hours}h)")
    print(f"{'='*70}")
    print(f"  Total: {report.total_runs}  ✅ {report.completed}  ❌ {report.failed}  ⏳ {report.running}")
    print(f"{'-'*70}")
    for run_record in report.recent_runs:
        started = run_record.started_at.strftime("%Y-%m-%d %H:%M")
        print(
            f"  {started}  {run_record.provider_name:<8} {run_record.status:<10} "
            f"{run_record.plans_added}/{run_record.plans_found} saved"
        )
        if run_record.error_message:
            print(f"      - {run_record.error_message}")
    print(f"{'='*70}\n")


def _print_report(report: BatchReport) -> None:
    print(f"\n{'='*70}")
    print("  Scrape Summary")
    print(f"{'='*70}")
    for outcome in report.outcomes:
        status = "✅" if outcome.success else "❌"
        print(
            f"  {status} {outcome.provider:<8} {outcome.country}: "
            f"{outcome.plans_found} found, {outcome.plans_added} saved"
        )
        for error in outcome.errors:
            print(f"      - {error}")
    for error in report.provider_errors:
        print(f"  ❌ {error}")
    print(f"{'='*70}")
    print(f"  Plans found: {report.total_plans_found}")
    print(f"  Plans saved: {report.total_plans_added}")
    print(f"  Errors: {report.total_errors}")
    print(f"{'='*70}\n")


def main() -> int:
    """Parse arguments and run the scraper."""
    parser = argparse.ArgumentParser(
        description="Scrape eSIM plans from provider websites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_scraper.py --provider Airalo --country US
  python scripts/run_scraper.py --all --group 1
  python scripts/run_scraper.py --provider Saily --country DE --dry-run
  python scripts/run_scraper.py --status
        """,
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--provider", action="append", help="Provider name (repeatable), e.g. 'Airalo'")
    target.add_argument("--all", action="store_true", help="Run every supported provider")
    target.add_argument("--status", action="store_true", help="Show recent scrape runs and exit")

    parser.add_argument("--country", action="append", help="ISO country code (repeatable)")
    parser.add_argument("--group", help="Scheduled country group (e.g. '1', '2'), used when --country is absent")
    parser.add_argument("--dry-run", action="store_true", help="Scrape and report without saving")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")

    args = parser.parse_args()

    configure_logging(settings)

    if args.status:
        _print_status(asyncio.run(status()))
        return 0

    countries = [c.upper() for c in args.country] if args.country else settings.get_country_group(args.group)
    providers = None if args.all else args.provider

    report = asyncio.run(run(providers, countries, dry_run=args.dry_run, init_tables=args.create_tables))
    _print_report(report)
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
