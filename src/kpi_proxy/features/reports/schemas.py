"""KPI and Daily Report Schemas

Pydantic models for the reporting endpoints:

1. KPI summary over the trailing 30 days
2. Daily sales (units per day)
3. Daily visits (visits per day)
4. Stock snapshot for one date
5. Connectivity probe

Dates are carried as plain ``YYYY-MM-DD`` strings; request values are passed
through untouched. ``from`` is a Python keyword, so range models use a
``from_`` field serialized under the ``from`` alias."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Union


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", description="Start of the range, inclusive (YYYY-MM-DD)")
    to: str = Field(..., description="End of the range, inclusive (YYYY-MM-DD)")

# 1. KPI summary
class KpiSummaryResponse(BaseModel):
    range: DateRange
    sales_30d: int
    visits_30d: Union[int, float]
    conv_30d: float

# 2. Daily sales
class DailySalesRow(BaseModel):
    date: str
    orders: int

class DailySalesResponse(DateRange):
    rows: List[DailySalesRow]

# 3. Daily visits
class DailyVisitsRow(BaseModel):
    date: str
    visits: Union[int, float]

class DailyVisitsResponse(DateRange):
    rows: List[DailyVisitsRow]

# 4. Stock snapshot
class StockSnapshotResponse(BaseModel):
    date: str
    count: int
    rows: List[Dict[str, Any]]

# 5. Connectivity probe
class PingResponse(BaseModel):
    ok: bool
    table: Optional[str] = None
    error: Optional[str] = None
