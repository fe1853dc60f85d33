"""Example FastAPI application serving per-second system rates.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /metrics                - NDJSON value lists (raw counters and rates)
    /metrics?plugin=rate    - NDJSON rates only
    /metrics?since=<ts>     - NDJSON value lists since timestamp (incremental)
    /logs                   - NDJSON pipeline logs
    /logs?level=<level>     - NDJSON logs filtered by level (INFO, ERROR, etc.)

Pipeline:
    A collector thread dispatches psutil counters to a daemon. The rate writer
    re-dispatches their rates under the "rate" source tag on every read tick,
    and both are stored in SQLite.
"""

import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from examples.system_rates import collect_system_counters
from ratepipe import (
    Daemon,
    InMemoryLogStorage,
    RatePipeHandler,
    RateWriter,
    SQLiteValueStorage,
    storage_writer,
)
from ratepipe.adapters.frameworks.fastapi import create_rate_router

# Create storage instances
value_storage = SQLiteValueStorage("rates.db")
log_storage = InMemoryLogStorage(max_size=1000)

# Pipeline logs are served at /logs
logging.getLogger("ratepipe").addHandler(
    RatePipeHandler(log_storage, level=logging.INFO)
)
logging.getLogger("ratepipe").setLevel(logging.INFO)

daemon = Daemon(interval=5.0, history_max_age=300.0)
RateWriter(daemon.history, daemon).register(daemon)
daemon.register_write("store", storage_writer(value_storage))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    stop = threading.Event()
    collector = threading.Thread(
        target=collect_system_counters, args=(daemon, stop), daemon=True
    )
    daemon.start()
    collector.start()
    try:
        yield
    finally:
        stop.set()
        collector.join()
        daemon.stop()


app = FastAPI(title="Rate Pipeline Example", lifespan=lifespan)

# Mount /metrics and /logs
app.include_router(create_rate_router(value_storage, log_storage))


@app.get("/")
async def root() -> dict[str, str | int]:
    """Summary of the pipeline state."""
    return {
        "message": "Check /metrics?plugin=rate and /logs endpoints.",
        "series": len(daemon.history),
    }
