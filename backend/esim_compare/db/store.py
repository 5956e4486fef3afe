"""Persistence capability consumed by the ingestion pipeline.

The pipeline talks to storage only through ``PlanStore``: resolve a
reference id, delete by filter, insert, update one row, select.  It
never builds queries itself.  ``SQLAlchemyPlanStore`` implements the
interface on an async session factory where every call runs in its own
session and commits immediately, so a failure part-way through a batch
leaves earlier writes in place.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from esim_compare.core.exceptions import StoreError
from esim_compare.models import Base, Country, EsimPlan, Provider, ScrapingLog

logger = structlog.get_logger(__name__)


PROVIDERS_TABLE = "providers"
COUNTRIES_TABLE = "countries"
PLANS_TABLE = "esim_plans"
SCRAPING_LOGS_TABLE = "scraping_logs"


class PlanStore(ABC):
    """Table-oriented storage operations used by scrapers and the writer.

    ``filters`` are equality matches on column names, combined with AND.
    Implementations raise StoreError when the backend rejects a call.
    """

    @abstractmethod
    async def resolve_entity_id(self, table: str, filters: Mapping[str, Any]) -> Optional[uuid.UUID]:
        """Return the id of the single row matching filters, or None."""

    @abstractmethod
    async def delete_where(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete all rows matching filters and return how many went."""

    @abstractmethod
    async def insert(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored (including generated columns)."""

    @abstractmethod
    async def update(self, table: str, entity_id: uuid.UUID, values: Mapping[str, Any]) -> None:
        """Update the row with the given id."""

    @abstractmethod
    async def select_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the first row matching filters, or None."""

    @abstractmethod
    async def select_many(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        lower_bounds: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return every row matching filters.

        ``lower_bounds`` adds ``column >= value`` conditions; ``order_by``
        names the sort column.
        """


class SQLAlchemyPlanStore(PlanStore):
    """PlanStore backed by SQLAlchemy async sessions."""

    TABLES: Dict[str, Type[Base]] = {
        PROVIDERS_TABLE: Provider,
        COUNTRIES_TABLE: Country,
        PLANS_TABLE: EsimPlan,
        SCRAPING_LOGS_TABLE: ScrapingLog,
    }

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize the store.

        Args:
            session_factory: Async session factory; one session per call
        """
        self.session_factory = session_factory
        self.logger = logger.bind(store="sqlalchemy")

    def _model(self, table: str) -> Type[Base]:
        model = self.TABLES.get(table)
        if model is None:
            raise StoreError(table, "lookup", "unknown table")
        return model

    def _column(self, table: str, model: Type[Base], column_name: str):
        column = getattr(model, column_name, None)
        if column is None:
            raise StoreError(table, "filter", f"unknown column '{column_name}'")
        return column

    def _conditions(self, table: str, model: Type[Base], filters: Optional[Mapping[str, Any]]) -> list:
        return [self._column(table, model, name) == value for name, value in (filters or {}).items()]

    @staticmethod
    def _to_dict(row: Base) -> Dict[str, Any]:
        return {attr.key: getattr(row, attr.key) for attr in row.__mapper__.column_attrs}

    async def resolve_entity_id(self, table: str, filters: Mapping[str, Any]) -> Optional[uuid.UUID]:
        model = self._model(table)
        conditions = self._conditions(table, model, filters)
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(model.id).where(*conditions).limit(1))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(table, "select", str(e)) from e

    async def delete_where(self, table: str, filters: Mapping[str, Any]) -> int:
        model = self._model(table)
        conditions = self._conditions(table, model, filters)
        if not conditions:
            raise StoreError(table, "delete", "refusing to delete without filters")
        try:
            async with self.session_factory() as session:
                result = await session.execute(delete(model).where(*conditions))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(table, "delete", str(e)) from e

        self.logger.debug("rows_deleted", table=table, count=result.rowcount)
        return result.rowcount or 0

    async def insert(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        try:
            async with self.session_factory() as session:
                row = model(**record)
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return self._to_dict(row)
        except (SQLAlchemyError, TypeError) as e:
            # TypeError: record carries a key the model doesn't have
            raise StoreError(table, "insert", str(e)) from e

    async def update(self, table: str, entity_id: uuid.UUID, values: Mapping[str, Any]) -> None:
        model = self._model(table)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    update(model).where(model.id == entity_id).values(**values)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(table, "update", str(e)) from e

        if not result.rowcount:
            raise StoreError(table, "update", f"no row with id {entity_id}")

    async def select_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        rows = await self.select_many(table, filters, limit=1)
        return rows[0] if rows else None

    async def select_many(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        lower_bounds: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        model = self._model(table)
        conditions = self._conditions(table, model, filters)
        for column_name, value in (lower_bounds or {}).items():
            conditions.append(self._column(table, model, column_name) >= value)

        query = select(model).where(*conditions)
        if order_by:
            column = self._column(table, model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit:
            query = query.limit(limit)
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [self._to_dict(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(table, "select", str(e)) from e
