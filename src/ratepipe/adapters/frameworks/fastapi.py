"""FastAPI adapter exposing stored value lists and pipeline logs."""

from fastapi import APIRouter, Query, Response

from ratepipe.core.encoding.ndjson import encode_logs, encode_values
from ratepipe.core.ports import LogStoragePort, ValueStoragePort


def create_rate_router(
    value_storage: ValueStoragePort,
    log_storage: LogStoragePort,
) -> APIRouter:
    """Create a FastAPI router with /metrics and /logs endpoints.

    Args:
        value_storage: Storage adapter implementing ValueStoragePort.
        log_storage: Storage adapter implementing LogStoragePort.

    Returns:
        APIRouter with /metrics and /logs endpoints configured.
    """
    router = APIRouter()

    @router.get("/metrics")
    async def get_metrics(
        since: float = Query(default=0),
        plugin: str | None = Query(default=None),
    ) -> Response:
        """Return stored value lists in NDJSON format.

        Args:
            since: Unix timestamp. Returns value lists with time > since.
            plugin: Only value lists with this source tag (e.g. "rate").
        """

        async def selected():
            async for value_list in value_storage.read(since=since):
                if plugin is None or value_list.plugin == plugin:
                    yield value_list

        body = await encode_values(selected())
        return Response(content=body, media_type="application/x-ndjson")

    @router.get("/logs")
    async def get_logs(
        since: float = Query(default=0),
        level: str | None = Query(default=None),
    ) -> Response:
        """Return pipeline logs in NDJSON format."""
        body = await encode_logs(
            log_storage.read(since=since, level=level.upper() if level else None)
        )
        return Response(content=body, media_type="application/x-ndjson")

    return router
