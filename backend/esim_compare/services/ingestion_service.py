"""Plan ingestion: full-replace persistence with a scrape-run audit record.

Every save opens a row in ``scraping_logs`` with status ``running`` and
always closes it as ``completed`` or ``failed``.  Store calls commit one
by one, so a run that fails midway keeps whatever it inserted already.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

import structlog

from esim_compare.db.store import (
    COUNTRIES_TABLE,
    PLANS_TABLE,
    SCRAPING_LOGS_TABLE,
    PlanStore,
)
from esim_compare.scrapers.base import ScrapedPlan, ScrapingResult

logger = structlog.get_logger(__name__)


RUN_RUNNING = "running"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"


class PlanIngestionService:
    """Writes a scraped batch for one provider into the store."""

    def __init__(self, store: PlanStore, provider_id: UUID, scrape_type: str = "full"):
        """Initialize ingestion service.

        Args:
            store: Persistence capability
            provider_id: Provider the batch belongs to
            scrape_type: Value recorded on the run row
        """
        self.store = store
        self.provider_id = provider_id
        self.scrape_type = scrape_type
        self.logger = logger.bind(service="ingestion_service", provider_id=str(provider_id))

    async def save_plans(self, plans: Sequence[ScrapedPlan]) -> ScrapingResult:
        """Replace the provider's plans for every country present in ``plans``.

        For each country in the batch the existing (provider, country)
        plans are deleted, then each plan is inserted.  Per-plan and
        per-country failures are collected in ``errors`` and do not stop
        the batch; a country whose old plans could not be cleared gets no
        new ones.

        Args:
            plans: Scraped plans, any mix of countries

        Returns:
            ScrapingResult with counts and collected errors

        Raises:
            StoreError: If the run record itself cannot be created
        """
        result = ScrapingResult(plans_found=len(plans))

        run = await self.store.insert(SCRAPING_LOGS_TABLE, {
            "provider_id": self.provider_id,
            "scrape_type": self.scrape_type,
            "status": RUN_RUNNING,
            "plans_found": len(plans),
        })
        run_id = run["id"]
        self.logger.info("ingestion_started", run_id=str(run_id), plans_found=len(plans))

        try:
            country_ids = await self._replace_countries(plans, result)

            for plan in plans:
                await self._insert_plan(plan, country_ids, result)

            await self.store.update(SCRAPING_LOGS_TABLE, run_id, {
                "status": RUN_COMPLETED,
                "plans_added": result.plans_added,
                "plans_updated": result.plans_updated,
                "error_message": "; ".join(result.errors) if result.errors else None,
                "completed_at": datetime.now(timezone.utc),
            })
        except Exception as e:
            result.success = False
            result.errors.append(f"Scraping failed: {e}")
            self.logger.error("ingestion_failed", run_id=str(run_id), error=str(e), exc_info=True)
            await self.store.update(SCRAPING_LOGS_TABLE, run_id, {
                "status": RUN_FAILED,
                "plans_added": result.plans_added,
                "plans_updated": result.plans_updated,
                "error_message": "; ".join(result.errors),
                "completed_at": datetime.now(timezone.utc),
            })
            return result

        self.logger.info(
            "ingestion_complete",
            run_id=str(run_id),
            plans_found=result.plans_found,
            plans_added=result.plans_added,
            errors=len(result.errors),
        )
        return result

    async def _replace_countries(
        self,
        plans: Sequence[ScrapedPlan],
        result: ScrapingResult,
    ) -> Dict[str, Optional[UUID]]:
        """Resolve each distinct country once and clear its existing plans.

        A country whose old plans could not be deleted is left out of the
        returned mapping so its new plans are never written on top of the
        old ones.
        """
        country_ids: Dict[str, Optional[UUID]] = {}

        for country_code in dict.fromkeys(plan.country_code for plan in plans):
            try:
                country_id = await self.store.resolve_entity_id(COUNTRIES_TABLE, {"code": country_code})
                if country_id is not None:
                    deleted = await self.store.delete_where(PLANS_TABLE, {
                        "provider_id": self.provider_id,
                        "country_id": country_id,
                    })
                    self.logger.info("old_plans_deleted", country=country_code, count=deleted)
            except Exception as e:
                result.errors.append(f"Failed to delete old plans for {country_code}: {e}")
                self.logger.error("old_plans_delete_failed", country=country_code, error=str(e))
                continue
            country_ids[country_code] = country_id

        return country_ids

    async def _insert_plan(
        self,
        plan: ScrapedPlan,
        country_ids: Dict[str, Optional[UUID]],
        result: ScrapingResult,
    ) -> None:
        if plan.country_code not in country_ids:
            # Old plans are still in place; writing would merge the two sets
            self.logger.debug("plan_skipped", plan=plan.name, country=plan.country_code)
            return

        country_id = country_ids[plan.country_code]
        if country_id is None:
            result.errors.append(f"Country not found: {plan.country_code}")
            return

        try:
            await self.store.insert(PLANS_TABLE, self._plan_record(plan, country_id))
        except Exception as e:
            result.errors.append(f"Failed to insert plan {plan.name}: {e}")
            self.logger.warning("plan_insert_failed", plan=plan.name, error=str(e))
            return

        result.plans_added += 1

    def _plan_record(self, plan: ScrapedPlan, country_id: UUID) -> Dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "country_id": country_id,
            "name": plan.name,
            "data_amount_gb": plan.data_amount_gb,
            "validity_days": plan.validity_days,
            "price_usd": plan.price_usd,
            "currency": plan.currency or "USD",
            "original_price": plan.original_price if plan.original_price is not None else plan.price_usd,
            "is_unlimited": plan.is_unlimited,
            "network_type": plan.network_type,
            "coverage_type": plan.coverage_type,
            "hotspot_allowed": plan.hotspot_allowed,
            "voice_calls": plan.voice_calls,
            "sms_included": plan.sms_included,
            "plan_url": plan.plan_url,
            "last_scraped_at": datetime.now(timezone.utc),
        }

