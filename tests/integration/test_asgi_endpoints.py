"""Integration tests for the ASGI /metrics and /logs endpoints."""

import json

import pytest

from ratepipe.adapters.frameworks.asgi import create_asgi_app
from ratepipe.adapters.storage import (
    InMemoryLogStorage,
    InMemoryValueStorage,
    SQLiteValueStorage,
    storage_writer,
)
from ratepipe.core.models import LogEntry, ValueList

pytestmark = [pytest.mark.asgi, pytest.mark.tier(2)]


@pytest.fixture
def value_storage(make_vl) -> InMemoryValueStorage:
    """Value storage holding one raw and one rate value list."""
    storage = InMemoryValueStorage()
    storage.write_sync(make_vl(150, time=10.0))
    storage.write_sync(make_vl(5.0, plugin="rate", type="gauge", time=10.0))
    return storage


@pytest.fixture
def log_storage() -> InMemoryLogStorage:
    """Log storage with an info and an error entry."""
    storage = InMemoryLogStorage()
    storage.write_sync(LogEntry(timestamp=1.0, level="INFO", message="Daemon started"))
    storage.write_sync(
        LogEntry(
            timestamp=2.0,
            level="ERROR",
            message="Dropping rate",
            attributes={"error_code": "resource_exhausted"},
        )
    )
    return storage


class TestMetricsEndpoint:
    """Tests for /metrics."""

    @pytest.mark.tra("Adapter.ASGI.MetricsEndpoint")
    async def test_returns_all_value_lists(
        self, value_storage, asgi_test_client
    ) -> None:
        """/metrics returns every stored value list as NDJSON."""
        app = create_asgi_app(value_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/x-ndjson"
        lines = response.text.strip().split("\n")
        assert [json.loads(line)["plugin"] for line in lines] == ["cpuX", "rate"]

    async def test_plugin_filter(self, value_storage, asgi_test_client) -> None:
        """/metrics?plugin=rate returns only rate value lists."""
        app = create_asgi_app(value_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics", params={"plugin": "rate"})

        (line,) = response.text.strip().split("\n")
        assert json.loads(line)["values"] == [5.0]

    @pytest.mark.parametrize("since", ["10", "-5", "nan", "abc"])
    async def test_since_parameter(
        self, value_storage, asgi_test_client, since
    ) -> None:
        """Valid since filters; invalid values fall back to 0."""
        app = create_asgi_app(value_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics", params={"since": since})

        expected = 0 if since == "10" else 2
        assert len(response.text.splitlines()) == expected

    async def test_serves_rows_stored_by_host_threads(
        self, make_vl, counter_ds, asgi_test_client
    ) -> None:
        """Value lists written through storage_writer reach /metrics."""
        storage = SQLiteValueStorage(":memory:")
        write = storage_writer(storage, plugins={"rate"})
        write(counter_ds, make_vl(5.0, plugin="rate", time=10.0))
        app = create_asgi_app(storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics")

        (line,) = response.text.strip().split("\n")
        assert json.loads(line)["values"] == [5.0]
        await storage.close()

    async def test_storage_error_returns_500(self, asgi_test_client) -> None:
        """A failing storage answers 500 with a JSON error."""

        class BrokenStorage(InMemoryValueStorage):
            async def read(self, since: float = 0):
                raise RuntimeError("db gone")
                yield ValueList(values=[], host="", plugin="", type="")

        app = create_asgi_app(BrokenStorage())

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}


class TestLogsEndpoint:
    """Tests for /logs."""

    async def test_level_filter(
        self, value_storage, log_storage, asgi_test_client
    ) -> None:
        """/logs?level=error returns only error entries."""
        app = create_asgi_app(value_storage, log_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/logs", params={"level": "error"})

        (line,) = response.text.strip().split("\n")
        assert json.loads(line)["attributes"]["error_code"] == "resource_exhausted"

    async def test_logs_without_storage_is_404(
        self, value_storage, asgi_test_client
    ) -> None:
        """Without a log storage /logs does not exist."""
        app = create_asgi_app(value_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/logs")

        assert response.status_code == 404

    async def test_unknown_path_is_404(self, value_storage, asgi_test_client) -> None:
        """Unknown paths answer 404."""
        app = create_asgi_app(value_storage)

        async with asgi_test_client(app) as client:
            response = await client.get("/nope")

        assert response.status_code == 404
        assert response.text == "Not Found"
