"""Reporting API endpoints for the KPI dashboard

Every route here sits behind the bearer-token gate. Date-ranged reports
accept optional ``from``/``to`` query parameters and fall back to the
trailing 30-day window. Handlers delegate to the service module; any failure
is logged with the handler name and answered with a generic 500."""
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from ...core.config import Settings, get_settings
from ...core.database import DatabaseClient, get_database
from ..auth.security import require_api_secret

from .schemas import (
    DateRange, KpiSummaryResponse, DailySalesResponse, DailyVisitsResponse,
    StockSnapshotResponse, PingResponse
)
from . import service as report_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Reports"],
    # Apply auth dependency to all routes in this router
    dependencies=[Depends(require_api_secret)],
)

Db = Annotated[DatabaseClient, Depends(get_database)]
Config = Annotated[Settings, Depends(get_settings)]

INTERNAL_ERROR = "Internal server error"


def date_range_query(
    from_: Annotated[Optional[str], Query(alias="from", description="Start date (YYYY-MM-DD)")] = None,
    to: Annotated[Optional[str], Query(description="End date (YYYY-MM-DD)")] = None,
) -> DateRange:
    return report_service.resolve_date_range(from_, to)


def _internal_error() -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get("/kpis", response_model=KpiSummaryResponse)
async def get_kpi_summary(db: Db, settings: Config):
    try:
        return await report_service.generate_kpi_summary(db, settings)
    except Exception:
        logger.exception("GET /kpis failed")
        raise _internal_error()


@router.get("/sales/daily", response_model=DailySalesResponse)
async def get_daily_sales(
    db: Db, settings: Config, period: Annotated[DateRange, Depends(date_range_query)]
):
    try:
        return await report_service.generate_daily_sales_report(db, settings, period)
    except Exception:
        logger.exception("GET /sales/daily failed for %s..%s", period.from_, period.to)
        raise _internal_error()


@router.get("/visits/daily", response_model=DailyVisitsResponse)
async def get_daily_visits(
    db: Db, settings: Config, period: Annotated[DateRange, Depends(date_range_query)]
):
    try:
        return await report_service.generate_daily_visits_report(db, settings, period)
    except Exception:
        logger.exception("GET /visits/daily failed for %s..%s", period.from_, period.to)
        raise _internal_error()


@router.get("/stock/full", response_model=StockSnapshotResponse)
async def get_stock_snapshot(
    db: Db,
    settings: Config,
    date: Optional[str] = Query(None, description="Snapshot date (YYYY-MM-DD), defaults to today"),
):
    try:
        return await report_service.generate_stock_snapshot(db, settings, date)
    except Exception:
        logger.exception("GET /stock/full failed for date=%s", date)
        raise _internal_error()


@router.get("/ping-supa", response_model=PingResponse, response_model_exclude_none=True)
async def ping_database(db: Db, settings: Config):
    try:
        result = await report_service.probe_connectivity(db, settings)
    except Exception:
        logger.exception("GET /ping-supa failed")
        raise _internal_error()
    if not result.ok:
        logger.error("GET /ping-supa: no candidate table answered")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.model_dump(exclude_none=True),
        )
    return result
