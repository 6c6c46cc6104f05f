"""Aggregation layer over the visit history.

Issues the independent statistical queries for one report concurrently,
each on its own session, and assembles a normalized AggregatedSnapshot.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.database.models import AttractionModel, TouristModel, VisitModel
from shared.models import AggregatedSnapshot, DateWindow
from shared.observability import get_logger, log_database_query

from .date_ranges import resolve_date_range

logger = get_logger(__name__)

# Integers beyond this magnitude lose precision as IEEE doubles
_MAX_EXACT_FLOAT_INT = 2**53

UNKNOWN = "Unknown"
UNSPECIFIED_GENDER = "unspecified"


class StorageQueryError(Exception):
    """Raised when the visit history cannot be queried."""

    pass


def normalize_numeric(value: Any) -> Any:
    """Convert wide numeric values from the data source into plain floats.

    Walks dicts, lists and tuples recursively. Decimals (SUM/AVG results)
    become floats, as do integers too wide for a double to hold exactly.
    Booleans and everything else pass through unchanged.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, int) and abs(value) > _MAX_EXACT_FLOAT_INT:
        return float(value)
    if isinstance(value, dict):
        return {key: normalize_numeric(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_numeric(item) for item in value]
    return value


class AggregationService:
    """Builds aggregated snapshots from the visit history."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        query_timeout: float = 30.0,
        top_attractions_limit: int = 10,
    ):
        self.session_factory = session_factory
        self.query_timeout = query_timeout
        self.top_attractions_limit = top_attractions_limit

    async def aggregate(
        self,
        date_range: str | DateWindow,
        attraction_id: int | None = None,
    ) -> AggregatedSnapshot:
        """Compute the snapshot for a date range and optional attraction scope.

        Args:
            date_range: Specifier string or an already resolved window
            attraction_id: Restrict to one attraction; None aggregates all

        Returns:
            Snapshot; an empty range yields zeroed totals.

        Raises:
            StorageQueryError: A query failed or the fan-out timed out.
        """
        window = (
            date_range
            if isinstance(date_range, DateWindow)
            else resolve_date_range(date_range)
        )
        conditions = self._visit_conditions(window, attraction_id)
        started = time.perf_counter()

        results = await self._fan_out(
            {
                "total_visits": lambda: self._scalar(
                    "count", select(func.count(VisitModel.id)).where(*conditions)
                ),
                "total_revenue": lambda: self._scalar(
                    "sum",
                    select(func.coalesce(func.sum(VisitModel.amount), 0)).where(
                        *conditions, VisitModel.amount.is_not(None)
                    ),
                ),
                "unique_visitors": lambda: self._scalar(
                    "count_distinct",
                    select(func.count(func.distinct(VisitModel.user_id))).where(*conditions),
                ),
                "avg_rating": lambda: self._scalar(
                    "avg", self._avg_rating_query(attraction_id), table="attractions"
                ),
                "trend": lambda: self._rows("daily_trend", self._daily_trend_query(conditions)),
                "top": lambda: self._rows("top_attractions", self._top_query(conditions)),
                "demographics": lambda: self._rows(
                    "demographics", self._demographics_query(conditions), table="tourists"
                ),
            }
        )

        top_rows = results["top"]
        metadata = await self._attraction_metadata([row[0] for row in top_rows])

        raw = {
            "start": window.start,
            "end": window.end,
            "attraction_id": attraction_id,
            "total_visits": results["total_visits"] or 0,
            "total_revenue": results["total_revenue"] or 0,
            "unique_visitors": results["unique_visitors"] or 0,
            "avg_rating": results["avg_rating"] or 0,
            "trend": [
                {"day": day, "visits": visits, "revenue": revenue or 0}
                for day, visits, revenue in results["trend"]
            ],
            "top_attractions": [
                {
                    "attraction_id": attr_id,
                    "name": metadata.get(attr_id, {}).get("name") or UNKNOWN,
                    "category": metadata.get(attr_id, {}).get("category") or UNKNOWN,
                    "rating": metadata.get(attr_id, {}).get("rating") or 0,
                    "visits": visits,
                    "revenue": revenue or 0,
                }
                for attr_id, visits, revenue in top_rows
            ],
            "demographics": [
                {"category": category, "count": count}
                for category, count in results["demographics"]
            ],
        }

        snapshot = AggregatedSnapshot.model_validate(normalize_numeric(raw))
        logger.info(
            "Snapshot aggregated",
            attraction_id=attraction_id,
            total_visits=snapshot.total_visits,
            trend_days=len(snapshot.trend),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return snapshot

    async def _fan_out(
        self, queries: dict[str, Callable[[], Awaitable[Any]]]
    ) -> dict[str, Any]:
        """Run all queries concurrently; the first failure aborts the rest."""
        tasks = {name: asyncio.create_task(factory()) for name, factory in queries.items()}
        try:
            values = await asyncio.wait_for(
                asyncio.gather(*tasks.values()), timeout=self.query_timeout
            )
        except TimeoutError as e:
            raise StorageQueryError(
                f"Aggregation queries exceeded {self.query_timeout}s"
            ) from e
        except (SQLAlchemyError, OSError) as e:
            raise StorageQueryError(f"Aggregation query failed: {e}") from e
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
        return dict(zip(tasks.keys(), values))

    async def _scalar(self, operation: str, stmt: Select, table: str = "visits") -> Any:
        start = time.perf_counter()
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            value = result.scalar()
        log_database_query(logger, operation, table, (time.perf_counter() - start) * 1000)
        return value

    async def _rows(self, operation: str, stmt: Select, table: str = "visits") -> list[tuple]:
        start = time.perf_counter()
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = [tuple(row) for row in result.all()]
        log_database_query(
            logger, operation, table, (time.perf_counter() - start) * 1000, len(rows)
        )
        return rows

    async def _attraction_metadata(self, attraction_ids: list[int]) -> dict[int, dict[str, Any]]:
        """Name, category and rating for the ranked attractions."""
        if not attraction_ids:
            return {}
        stmt = select(
            AttractionModel.id,
            AttractionModel.name,
            AttractionModel.category,
            AttractionModel.rating,
        ).where(AttractionModel.id.in_(attraction_ids))
        try:
            rows = await asyncio.wait_for(
                self._rows("attraction_metadata", stmt, table="attractions"),
                timeout=self.query_timeout,
            )
        except TimeoutError as e:
            raise StorageQueryError("Attraction metadata query timed out") from e
        except (SQLAlchemyError, OSError) as e:
            raise StorageQueryError(f"Attraction metadata query failed: {e}") from e
        return {
            attr_id: {"name": name, "category": category, "rating": rating}
            for attr_id, name, category, rating in rows
        }

    @staticmethod
    def _visit_conditions(window: DateWindow, attraction_id: int | None) -> list:
        conditions = [
            VisitModel.visit_date >= window.start.date(),
            VisitModel.visit_date <= window.end.date(),
        ]
        if attraction_id is not None:
            conditions.append(VisitModel.attraction_id == attraction_id)
        return conditions

    @staticmethod
    def _avg_rating_query(attraction_id: int | None) -> Select:
        stmt = select(func.avg(AttractionModel.rating))
        if attraction_id is not None:
            stmt = stmt.where(AttractionModel.id == attraction_id)
        return stmt

    @staticmethod
    def _daily_trend_query(conditions: list) -> Select:
        return (
            select(
                VisitModel.visit_date,
                func.count(VisitModel.id),
                func.coalesce(func.sum(VisitModel.amount), 0),
            )
            .where(*conditions)
            .group_by(VisitModel.visit_date)
            .order_by(VisitModel.visit_date)
        )

    def _top_query(self, conditions: list) -> Select:
        visits = func.count(VisitModel.id).label("visits")
        return (
            select(
                VisitModel.attraction_id,
                visits,
                func.coalesce(func.sum(VisitModel.amount), 0).label("revenue"),
            )
            .where(*conditions)
            .group_by(VisitModel.attraction_id)
            .order_by(desc(visits), VisitModel.attraction_id)
            .limit(self.top_attractions_limit)
        )

    @staticmethod
    def _demographics_query(conditions: list) -> Select:
        gender = func.coalesce(TouristModel.gender, UNSPECIFIED_GENDER).label("gender")
        return (
            select(gender, func.count(func.distinct(TouristModel.id)))
            .join(VisitModel, VisitModel.user_id == TouristModel.id)
            .where(*conditions)
            .group_by(gender)
            .order_by(gender)
        )
