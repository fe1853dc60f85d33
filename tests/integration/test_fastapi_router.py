"""Integration tests for the FastAPI router."""

import json

import pytest

from ratepipe.adapters.storage import InMemoryLogStorage, InMemoryValueStorage
from ratepipe.core.models import LogEntry

fastapi = pytest.importorskip("fastapi")

from ratepipe.adapters.frameworks.fastapi import create_rate_router  # noqa: E402

pytestmark = [pytest.mark.asgi, pytest.mark.tier(2)]


@pytest.fixture
def app(make_vl):
    """FastAPI app with the rate router and some stored data."""
    values = InMemoryValueStorage()
    values.write_sync(make_vl(150, time=10.0))
    values.write_sync(make_vl(5.0, plugin="rate", type="gauge", time=10.0))
    logs = InMemoryLogStorage()
    logs.write_sync(LogEntry(timestamp=1.0, level="WARNING", message="Dropping rate"))

    app = fastapi.FastAPI()
    app.include_router(create_rate_router(values, logs))
    return app


class TestFastAPIRouter:
    """Tests for create_rate_router()."""

    async def test_metrics_plugin_filter(self, app, asgi_test_client) -> None:
        """/metrics?plugin=rate returns only rate value lists."""
        async with asgi_test_client(app) as client:
            response = await client.get("/metrics", params={"plugin": "rate"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        (line,) = response.text.strip().split("\n")
        assert json.loads(line)["plugin"] == "rate"

    async def test_metrics_since(self, app, asgi_test_client) -> None:
        """since excludes value lists at or before it."""
        async with asgi_test_client(app) as client:
            response = await client.get("/metrics", params={"since": 10})

        assert response.text == ""

    async def test_logs_level_is_case_insensitive(self, app, asgi_test_client) -> None:
        """/logs?level=warning matches WARNING entries."""
        async with asgi_test_client(app) as client:
            response = await client.get("/logs", params={"level": "warning"})

        assert json.loads(response.text.strip())["message"] == "Dropping rate"
