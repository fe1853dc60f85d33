"""Plain ASGI application serving stored value lists and pipeline logs.

Works under any ASGI server (uvicorn, hypercorn, daphne) without FastAPI.
"""

import json
import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from ratepipe.adapters.frameworks.query_params import (
    _parse_level_param,
    _parse_plugin_param,
    _parse_since_param,
)
from ratepipe.core.encoding.ndjson import encode_logs, encode_values
from ratepipe.core.models import ValueList
from ratepipe.core.ports import LogStoragePort, ValueStoragePort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

Params = dict[str, list[str]]
Endpoint = Callable[[Params], Awaitable[str]]

NDJSON = "application/x-ndjson"


async def _respond(send: Send, status: int, content_type: str, body: str) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [(b"content-type", content_type.encode())],
        }
    )
    await send({"type": "http.response.body", "body": body.encode()})


async def _with_plugin(
    value_lists: AsyncIterable[ValueList], plugin: str | None
) -> AsyncIterable[ValueList]:
    async for value_list in value_lists:
        if plugin is None or value_list.plugin == plugin:
            yield value_list


def _metrics_endpoint(value_storage: ValueStoragePort) -> Endpoint:
    async def metrics(params: Params) -> str:
        selected = _with_plugin(
            value_storage.read(since=_parse_since_param(params)),
            _parse_plugin_param(params),
        )
        return await encode_values(selected)

    return metrics


def _logs_endpoint(log_storage: LogStoragePort) -> Endpoint:
    async def logs(params: Params) -> str:
        since = _parse_since_param(params)
        level = _parse_level_param(params)
        return await encode_logs(log_storage.read(since=since, level=level))

    return logs


def create_asgi_app(
    value_storage: ValueStoragePort,
    log_storage: LogStoragePort | None = None,
) -> ASGIApp:
    """Create an ASGI app with /metrics and /logs endpoints.

    ``/metrics`` accepts ``since`` and ``plugin`` (e.g. ``plugin=rate``);
    ``/logs`` accepts ``since`` and ``level``. Both answer in NDJSON.
    A failing storage answers 500 with a JSON error body.

    Args:
        value_storage: Storage adapter implementing ValueStoragePort.
        log_storage: Storage adapter implementing LogStoragePort; /logs
            answers 404 without one.

    Returns:
        ASGI application callable.
    """
    routes: dict[str, Endpoint] = {"/metrics": _metrics_endpoint(value_storage)}
    if log_storage is not None:
        routes["/logs"] = _logs_endpoint(log_storage)

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return
        endpoint = routes.get(scope["path"])
        if endpoint is None:
            await _respond(send, 404, "text/plain", "Not Found")
            return
        query = scope.get("query_string", b"").decode(errors="replace")
        try:
            body = await endpoint(parse_qs(query))
        except Exception:
            logger.exception("Error serving %s", scope["path"])
            error = json.dumps({"error": "Internal Server Error"})
            await _respond(send, 500, "application/json", error)
            return
        await _respond(send, 200, NDJSON, body)

    return app
