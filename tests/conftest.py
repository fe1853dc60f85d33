"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from pathlib import Path

import pytest

from ratepipe.adapters.history import InMemorySeriesHistory
from ratepipe.core.models import DataSet, DataSource, DataSourceType, ValueList

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture
def values_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for value storage tests."""
    return str(tmp_path / "values.db")


# === Domain Fixtures ===


@pytest.fixture
def counter_ds() -> DataSet:
    """Single-slot counter data set."""
    return DataSet("counter", (DataSource("value", DataSourceType.COUNTER),))


@pytest.fixture
def gauge_ds() -> DataSet:
    """Single-slot gauge data set."""
    return DataSet("gauge", (DataSource("value", DataSourceType.GAUGE),))


@pytest.fixture
def octets_ds() -> DataSet:
    """Two-slot derive data set (rx, tx)."""
    return DataSet(
        "if_octets",
        (
            DataSource("rx", DataSourceType.DERIVE),
            DataSource("tx", DataSourceType.DERIVE),
        ),
    )


@pytest.fixture
def make_vl() -> Callable[..., ValueList]:
    """Factory fixture for value lists of the "host1/cpuX" series.

    Usage:
        vl = make_vl(100, time=0.0)
        vl = make_vl(1, 2, type="if_octets", time=5.0)
    """

    def _make(*values: float, **fields: object) -> ValueList:
        params: dict[str, object] = {
            "host": "host1",
            "plugin": "cpuX",
            "type": "counter",
            "time": 0.0,
        }
        params.update(fields)
        return ValueList(values=list(values), **params)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def history() -> InMemorySeriesHistory:
    """Empty series history."""
    return InMemorySeriesHistory()


@pytest.fixture
def observed(
    history: InMemorySeriesHistory,
) -> Callable[[DataSet, ValueList], ValueList]:
    """Feed a value list to the history fixture and return it unchanged."""

    def _observe(data_set: DataSet, value_list: ValueList) -> ValueList:
        history.observe(data_set, value_list)
        return value_list

    return _observe


class RecordingDispatcher:
    """DispatchPort fake that records every dispatched value list."""

    def __init__(self, fail_on: Callable[[ValueList], bool] | None = None) -> None:
        self.dispatched: list[tuple[ValueList, DataSet | None]] = []
        self._fail_on = fail_on

    def dispatch(self, value_list: ValueList, data_set: DataSet | None = None) -> None:
        if self._fail_on is not None and self._fail_on(value_list):
            raise RuntimeError("downstream unavailable")
        self.dispatched.append((value_list, data_set))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """Recording dispatcher fake."""
    return RecordingDispatcher()


@pytest.fixture
def dispatcher_factory() -> type[RecordingDispatcher]:
    """The recording dispatcher class, for tests that need ``fail_on``."""
    return RecordingDispatcher


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(value_storage, log_storage)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
