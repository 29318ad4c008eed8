"""Thin async client for the PostgREST interface of the managed database.

Only read queries exist. Table and column names passed to ``query`` are
literal identifiers owned by this package; request input must never reach
them.
"""
import logging
from typing import Any, List, NamedTuple, Optional, Sequence

import httpx
from fastapi import Request
from pydantic import BaseModel

from .config import Settings
from .errors import BackendError

logger = logging.getLogger(__name__)


class DateFilter(BaseModel):
    column: str = "date"
    gte: Optional[str] = None
    lte: Optional[str] = None
    eq: Optional[str] = None


class QueryResult(NamedTuple):
    rows: List[dict[str, Any]]
    count: Optional[int]


def parse_content_range(header: Optional[str]) -> int:
    """Total from a Content-Range header such as ``0-24/573`` or ``*/0``."""
    if not header or "/" not in header:
        raise BackendError(f"Missing row count in Content-Range: {header!r}")
    total = header.rsplit("/", 1)[1]
    try:
        return int(total)
    except ValueError:
        raise BackendError(f"Unexpected Content-Range total: {header!r}")


class DatabaseClient:
    """
    Owns one httpx.AsyncClient for the process lifetime.

    ``connect`` and ``close`` are driven by the application lifespan; the
    optional ``transport`` lets tests mount an in-memory backend.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = f"{settings.database_url}/rest/v1"
        self._service_key = settings.database_service_key
        self._timeout = settings.database_timeout_s
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                    "Accept": "application/json",
                },
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
            logger.info("Database client connected to %s", self.base_url)

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.info("Database client closed.")

    @staticmethod
    def _build_params(
        columns: Sequence[str], filters: Optional[DateFilter], limit: Optional[int]
    ) -> List[tuple[str, str]]:
        params = [("select", ",".join(columns))]
        if filters is not None:
            for op in ("gte", "lte", "eq"):
                value = getattr(filters, op)
                if value is not None:
                    params.append((filters.column, f"{op}.{value}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return params

    async def query(
        self,
        table: str,
        columns: Sequence[str],
        filters: Optional[DateFilter] = None,
        limit: Optional[int] = None,
        count_only: bool = False,
    ) -> QueryResult:
        """
        Run a single SELECT against ``table``.

        With ``count_only`` a HEAD request asks for an exact count and no rows
        are transferred. Any failure raises BackendError; nothing is retried.
        """
        if self._http_client is None:
            raise BackendError("Database client is not connected")

        params = self._build_params(columns, filters, limit)
        method = "HEAD" if count_only else "GET"
        headers = {"Prefer": "count=exact"} if count_only else None
        logger.debug("%s /%s params=%s", method, table, params)

        try:
            response = await self._http_client.request(
                method, f"/{table}", params=params, headers=headers
            )
        except httpx.HTTPError as e:
            raise BackendError(f"Request to table '{table}' failed: {e}")

        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)

        if count_only:
            return QueryResult(rows=[], count=parse_content_range(response.headers.get("content-range")))

        try:
            rows = response.json()
        except ValueError:
            raise BackendError(f"Table '{table}' returned a non-JSON body")
        if not isinstance(rows, list):
            raise BackendError(f"Table '{table}' returned {type(rows).__name__}, expected a list")
        return QueryResult(rows=rows, count=None)


def _error_message(response: httpx.Response) -> str:
    # PostgREST error bodies look like {"message": ..., "code": ..., "hint": ...}
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Backend responded with HTTP {response.status_code}"


def get_database(request: Request) -> DatabaseClient:
    return request.app.state.database
