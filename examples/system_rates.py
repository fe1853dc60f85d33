"""System counter collection feeding the rate writer.

Run with:
    python -m examples.system_rates

Every second the CPU time and network byte counters are read with psutil and
dispatched to a daemon. The rate writer turns them into per-second rates,
which are printed as NDJSON on every read tick.
"""

import json
import logging
import threading
import time

import psutil

from ratepipe import Daemon, InMemoryValueStorage, RateWriter, ValueList, storage_writer
from ratepipe.core.encoding.ndjson import value_list_to_dict

logger = logging.getLogger(__name__)

HOST = "localhost"


def collect_once(daemon: Daemon) -> None:
    """Dispatch one sample of every CPU state and network interface."""
    now = time.time()

    for state, seconds in psutil.cpu_times()._asdict().items():
        daemon.dispatch(
            ValueList(
                # Jiffies, like /proc/stat
                values=[int(seconds * 100)],
                host=HOST,
                plugin="cpu",
                type="cpu",
                type_instance=state,
                time=now,
                interval=1.0,
            )
        )

    for nic, counters in psutil.net_io_counters(pernic=True).items():
        daemon.dispatch(
            ValueList(
                values=[counters.bytes_recv, counters.bytes_sent],
                host=HOST,
                plugin="interface",
                type="if_octets",
                type_instance=nic,
                time=now,
                interval=1.0,
            )
        )


def collect_system_counters(daemon: Daemon, stop: threading.Event) -> None:
    """Collect system counters every second until ``stop`` is set."""
    while not stop.is_set():
        try:
            collect_once(daemon)
        except Exception:
            logger.exception("Collection failed")
        stop.wait(1.0)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    storage = InMemoryValueStorage(max_size=10_000)
    daemon = Daemon(interval=5.0, history_max_age=60.0)
    RateWriter(daemon.history, daemon).register(daemon)
    daemon.register_write("store", storage_writer(storage, plugins={"rate"}))
    daemon.load_config({"rate": {"MaxPending": "10000"}})

    stop = threading.Event()
    collector = threading.Thread(
        target=collect_system_counters, args=(daemon, stop), daemon=True
    )
    since = 0.0
    with daemon:
        collector.start()
        try:
            while True:
                time.sleep(daemon.interval)
                for value_list in storage.read_sync(since):
                    print(json.dumps(value_list_to_dict(value_list)))
                    since = max(since, value_list.time)
        except KeyboardInterrupt:
            pass
        finally:
            stop.set()
            collector.join()


if __name__ == "__main__":
    main()
