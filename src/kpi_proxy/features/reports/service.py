"""
Reports Service Module

Builds the KPI and daily reports. Each function issues one or two read
queries through the DatabaseClient and reduces the rows in-process; all
accumulators are local to the call.
"""

import datetime
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Union

from ...core.config import Settings
from ...core.database import DatabaseClient, DateFilter
from ...core.errors import BackendError

from .schemas import (
    DateRange, KpiSummaryResponse, DailySalesRow, DailySalesResponse,
    DailyVisitsRow, DailyVisitsResponse, StockSnapshotResponse, PingResponse
)

logger = logging.getLogger(__name__)

TRAILING_WINDOW_DAYS = 30
VISITS_ROW_LIMIT = 100_000
STOCK_ROW_LIMIT = 10_000

Number = Union[int, float]


def today() -> datetime.date:
    return datetime.date.today()


def resolve_date_range(from_: Optional[str] = None, to: Optional[str] = None) -> DateRange:
    """
    Use the given bounds verbatim; each missing bound falls back to the
    trailing window ``[today - 30 days, today]``.
    """
    current = today()
    if not from_:
        from_ = (current - datetime.timedelta(days=TRAILING_WINDOW_DAYS)).isoformat()
    if not to:
        to = current.isoformat()
    return DateRange(from_=from_, to=to)


def coerce_number(value: Any) -> Number:
    """Numeric value of a ``visits`` cell; anything non-numeric counts as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return number if math.isfinite(number) else 0
    return 0


def count_by_date(rows: Iterable[Dict[str, Any]]) -> List[DailySalesRow]:
    counts: Dict[str, int] = {}
    for row in rows:
        day = row.get("date")
        if day is None:
            continue
        counts[day] = counts.get(day, 0) + 1
    return [DailySalesRow(date=day, orders=counts[day]) for day in sorted(counts)]


def sum_visits_by_date(rows: Iterable[Dict[str, Any]]) -> List[DailyVisitsRow]:
    totals: Dict[str, Number] = {}
    for row in rows:
        day = row.get("date")
        if day is None:
            continue
        totals[day] = totals.get(day, 0) + coerce_number(row.get("visits"))
    return [DailyVisitsRow(date=day, visits=totals[day]) for day in sorted(totals)]


def conversion_rate(sales: int, visits: Number) -> float:
    if visits > 0:
        return round(sales / visits, 4)
    return 0


def _range_filter(period: DateRange) -> DateFilter:
    return DateFilter(gte=period.from_, lte=period.to)


async def generate_kpi_summary(db: DatabaseClient, settings: Settings) -> KpiSummaryResponse:
    """
    Sales count, visit total and conversion over the fixed trailing window.

    Sales are counted server-side (count-only query); visit rows are summed
    here, capped at VISITS_ROW_LIMIT rows.
    """
    period = resolve_date_range()
    date_filter = _range_filter(period)

    sales = await db.query(settings.sales_table, ["date"], date_filter, count_only=True)
    visits = await db.query(settings.visits_table, ["date", "visits"], date_filter, limit=VISITS_ROW_LIMIT)

    sales_count = sales.count or 0
    total_visits = sum(coerce_number(row.get("visits")) for row in visits.rows)

    return KpiSummaryResponse(
        range=period,
        sales_30d=sales_count,
        visits_30d=total_visits,
        conv_30d=conversion_rate(sales_count, total_visits),
    )


async def generate_daily_sales_report(
    db: DatabaseClient, settings: Settings, period: DateRange
) -> DailySalesResponse:
    """Units sold per day (row count, not distinct items), ascending by date."""
    result = await db.query(settings.sales_table, ["date", "item_id"], _range_filter(period))
    return DailySalesResponse(from_=period.from_, to=period.to, rows=count_by_date(result.rows))


async def generate_daily_visits_report(
    db: DatabaseClient, settings: Settings, period: DateRange
) -> DailyVisitsResponse:
    result = await db.query(
        settings.visits_table, ["date", "visits"], _range_filter(period), limit=VISITS_ROW_LIMIT
    )
    return DailyVisitsResponse(from_=period.from_, to=period.to, rows=sum_visits_by_date(result.rows))


async def generate_stock_snapshot(
    db: DatabaseClient, settings: Settings, date: Optional[str] = None
) -> StockSnapshotResponse:
    """Raw stock rows for one date (default today), passed through as-is."""
    day = date or today().isoformat()
    result = await db.query(settings.stock_table, ["*"], DateFilter(eq=day), limit=STOCK_ROW_LIMIT)
    return StockSnapshotResponse(date=day, count=len(result.rows), rows=result.rows)


def probe_candidates(settings: Settings) -> List[str]:
    return [settings.sales_table, settings.visits_table, settings.stock_table]


async def probe_connectivity(db: DatabaseClient, settings: Settings) -> PingResponse:
    """
    Count-only probe against each candidate table in order.

    The first table that answers wins and later candidates are not queried.
    Failures on earlier candidates are only logged.
    """
    for table in probe_candidates(settings):
        try:
            await db.query(table, ["*"], count_only=True)
        except BackendError as e:
            logger.warning(f"Connectivity probe on table '{table}' failed: {e}")
            continue
        return PingResponse(ok=True, table=table)
    return PingResponse(ok=False, error="no candidate table reachable")
