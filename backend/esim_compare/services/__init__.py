"""Business logic services."""

from .ingestion_service import PlanIngestionService
from .run_history_service import RunHistoryService, RunRecord, ScrapeRunReport

__all__ = ["PlanIngestionService", "RunHistoryService", "RunRecord", "ScrapeRunReport"]
