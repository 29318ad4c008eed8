"""
Root conftest for the pytest test suite.

The managed database is replaced by ``FakePostgrest``, an in-memory stand-in
for its REST interface mounted through ``httpx.MockTransport``. Each test gets
fresh tables, so tests never share rows.

Key Fixtures:
- `settings`: Frozen settings with a known API secret.
- `backend`: The in-memory backend; seed `backend.tables`, break tables via
  `backend.failing`, inspect `backend.calls`.
- `app_for_testing`: The FastAPI application wired to the fake backend.
- `client`: A non-authenticated TestClient.
- `auth_client`: A TestClient sending the correct bearer token.
- `db`: A connected DatabaseClient for service-level tests.
"""

from typing import Any, AsyncGenerator, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kpi_proxy.core.config import Settings
from kpi_proxy.core.database import DatabaseClient
from kpi_proxy.main import create_app

TEST_API_SECRET = "test-api-secret"


class FakePostgrest:
    """Answers the subset of PostgREST the DatabaseClient speaks."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {"sales": [], "visits": [], "stock": []}
        self.failing: set[str] = set()
        self.calls: list[httpx.Request] = []

    def _matches(self, row: dict[str, Any], filters: list[tuple[str, str]]) -> bool:
        for column, expr in filters:
            op, _, value = expr.partition(".")
            cell = row.get(column)
            if cell is None:
                return False
            if op == "gte" and not cell >= value:
                return False
            if op == "lte" and not cell <= value:
                return False
            if op == "eq" and not cell == value:
                return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        if table in self.failing or table not in self.tables:
            return httpx.Response(404, json={"message": f"relation \"{table}\" does not exist"})

        params = list(request.url.params.multi_items())
        filters = [(k, v) for k, v in params if k not in ("select", "limit")]
        limit = dict(params).get("limit")

        rows = [row for row in self.tables[table] if self._matches(row, filters)]
        if limit is not None:
            rows = rows[: int(limit)]

        if request.method == "HEAD":
            return httpx.Response(200, headers={"Content-Range": f"*/{len(rows)}"})

        select = dict(params).get("select", "*")
        if select != "*":
            columns = select.split(",")
            rows = [{c: row.get(c) for c in columns} for row in rows]
        return httpx.Response(200, json=rows)


@pytest.fixture(scope="function")
def settings() -> Settings:
    return Settings(
        api_secret=TEST_API_SECRET,
        database_url="https://db.example.test",
        database_service_key="service-role-key",
        port=3000,
    )


@pytest.fixture(scope="function")
def backend() -> FakePostgrest:
    return FakePostgrest()


@pytest.fixture(scope="function")
def transport(backend: FakePostgrest) -> httpx.MockTransport:
    return httpx.MockTransport(backend.handler)


@pytest.fixture(scope="function")
def app_for_testing(settings: Settings, transport: httpx.MockTransport) -> FastAPI:
    return create_app(settings, transport=transport)


@pytest.fixture(scope="function")
def client(app_for_testing: FastAPI) -> Generator[TestClient, Any, None]:
    """
    Provides a non-authenticated starlette TestClient.
    """
    with TestClient(app_for_testing) as tc:
        yield tc


@pytest.fixture(scope="function")
def auth_client(app_for_testing: FastAPI) -> Generator[TestClient, Any, None]:
    """
    Provides a TestClient that sends the configured API secret.
    """
    with TestClient(app_for_testing) as tc:
        tc.headers["Authorization"] = f"Bearer {TEST_API_SECRET}"
        yield tc


@pytest_asyncio.fixture(scope="function")
async def db(settings: Settings, transport: httpx.MockTransport) -> AsyncGenerator[DatabaseClient, Any]:
    client = DatabaseClient(settings, transport=transport)
    await client.connect()
    yield client
    await client.close()
