"""In-memory series history implementing RateSourcePort."""

import logging
import threading
import time
from dataclasses import dataclass

from ratepipe.core.models import DataSet, SeriesIdentity, ValueList
from ratepipe.core.rates import NAN, compute_rates

logger = logging.getLogger(__name__)


@dataclass
class _SeriesState:
    values: list[float]
    time: float
    rates: list[float]
    last_update: float


class InMemorySeriesHistory:
    """Thread-safe map from series identity to its last sample and rates.

    ``observe`` must be called once per incoming value list, before any
    consumer asks for its rate. Rates are computed on observe and served
    unchanged by ``rate_of`` until the next sample of the series arrives.

    History lives only in process memory and is lost on restart.
    """

    def __init__(self) -> None:
        self._series: dict[SeriesIdentity, _SeriesState] = {}
        self._lock = threading.Lock()

    def observe(self, data_set: DataSet, value_list: ValueList) -> None:
        """Record a sample and compute its rates against the previous one.

        A sample that is not newer than the stored one is rejected: the
        stored sample is kept and the series' rates become NaN.
        """
        identity = value_list.identity
        values = [float(v) for v in value_list.values]
        now = time.time()
        with self._lock:
            state = self._series.get(identity)
            if state is None or len(state.values) != len(values):
                self._series[identity] = _SeriesState(
                    values=values,
                    time=value_list.time,
                    rates=[NAN] * len(values),
                    last_update=now,
                )
                return
            if value_list.time <= state.time:
                logger.debug(
                    "Rejecting sample for %s: time %s is not after %s",
                    identity,
                    value_list.time,
                    state.time,
                )
                state.rates = [NAN] * len(values)
                return
            state.rates = compute_rates(
                data_set, state.values, state.time, values, value_list.time
            )
            state.values = values
            state.time = value_list.time
            state.last_update = now

    def rate_of(self, data_set: DataSet, value_list: ValueList) -> list[float] | None:
        """Return the last computed rates of the value list's series."""
        with self._lock:
            state = self._series.get(value_list.identity)
            if state is None or len(state.rates) != len(data_set):
                return None
            return list(state.rates)

    def expire(self, max_age: float, now: float | None = None) -> int:
        """Forget series not observed within ``max_age`` seconds.

        Returns:
            Number of series removed.
        """
        cutoff = (time.time() if now is None else now) - max_age
        with self._lock:
            stale = [k for k, s in self._series.items() if s.last_update < cutoff]
            for identity in stale:
                del self._series[identity]
        if stale:
            logger.debug("Expired %d stale series", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
