"""Read side of the scrape-run audit log."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID

import structlog

from esim_compare.db.store import PROVIDERS_TABLE, SCRAPING_LOGS_TABLE, PlanStore
from esim_compare.services.ingestion_service import RUN_COMPLETED, RUN_FAILED, RUN_RUNNING

logger = structlog.get_logger(__name__)


@dataclass
class RunRecord:
    """One scrape run with its provider resolved to a name."""

    id: UUID
    provider_name: str
    status: str
    plans_found: int
    plans_added: int
    error_message: Optional[str]
    started_at: datetime
    completed_at: Optional[datetime]


@dataclass
class ScrapeRunReport:
    """Recent runs plus status counts over a trailing window."""

    window_hours: int
    recent_runs: List[RunRecord] = field(default_factory=list)
    total_runs: int = 0
    completed: int = 0
    failed: int = 0
    running: int = 0


class RunHistoryService:
    """Queries the scraping_logs table for operators."""

    def __init__(self, store: PlanStore):
        self.store = store
        self.logger = logger.bind(service="run_history_service")

    async def recent_runs(self, limit: int = 20) -> List[RunRecord]:
        """Most recent runs first, across all providers."""
        rows = await self.store.select_many(
            SCRAPING_LOGS_TABLE,
            order_by="started_at",
            descending=True,
            limit=limit,
        )
        provider_names = await self._provider_names()
        return [self._to_record(row, provider_names) for row in rows]

    async def status_report(
        self,
        limit: int = 20,
        window: timedelta = timedelta(hours=24),
        now: Optional[datetime] = None,
    ) -> ScrapeRunReport:
        """Build the run report shown by ``run_scraper.py --status``.

        Args:
            limit: How many recent runs to list
            window: Trailing period the status counts cover
            now: Reference time, defaults to the current UTC time

        Returns:
            ScrapeRunReport with recent runs and windowed counts
        """
        since = (now or datetime.now(timezone.utc)) - window
        windowed = await self.store.select_many(SCRAPING_LOGS_TABLE, lower_bounds={"started_at": since})
        statuses = [row["status"] for row in windowed]

        report = ScrapeRunReport(
            window_hours=int(window.total_seconds() // 3600),
            recent_runs=await self.recent_runs(limit),
            total_runs=len(statuses),
            completed=statuses.count(RUN_COMPLETED),
            failed=statuses.count(RUN_FAILED),
            running=statuses.count(RUN_RUNNING),
        )
        self.logger.info(
            "run_status_report",
            total=report.total_runs,
            completed=report.completed,
            failed=report.failed,
            running=report.running,
        )
        return report

    async def _provider_names(self) -> Dict[UUID, str]:
        rows = await self.store.select_many(PROVIDERS_TABLE)
        return {row["id"]: row["name"] for row in rows}

    @staticmethod
    def _to_record(row: dict, provider_names: Dict[UUID, str]) -> RunRecord:
        return RunRecord(
            id=row["id"],
            provider_name=provider_names.get(row["provider_id"], "unknown"),
            status=row["status"],
            plans_found=row["plans_found"],
            plans_added=row["plans_added"],
            error_message=row["error_message"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        )
