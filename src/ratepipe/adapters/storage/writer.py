"""Write callback that stores dispatched value lists."""

from collections.abc import Callable, Collection
from typing import Any

from ratepipe.core.models import DataSet, ValueList
from ratepipe.core.ports import ValueStoragePort


def storage_writer(
    storage: ValueStoragePort,
    plugins: Collection[str] | None = None,
) -> Callable[[DataSet, ValueList, Any], int]:
    """Adapt a value storage to a host write callback.

    Args:
        storage: Where value lists are written (synchronously).
        plugins: Only store value lists with one of these source tags;
            None stores everything.

    Returns:
        Callback suitable for ``Daemon.register_write``.
    """

    def write(data_set: DataSet, value_list: ValueList, user_data: Any = None) -> int:
        if plugins is None or value_list.plugin in plugins:
            storage.write_sync(value_list)
        return 0

    return write
