"""BDD step definitions for rate conversion features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from ratepipe.adapters.storage import InMemoryValueStorage, storage_writer
from ratepipe.core.models import ValueList
from ratepipe.host.daemon import Daemon
from ratepipe.plugins.rate_target import RateTarget
from ratepipe.plugins.rate_writer import RateWriter


@dataclass
class RateScenarioContext:
    """State shared by the steps of one scenario."""

    daemon: Daemon = field(default_factory=lambda: Daemon(interval=3600.0))
    storage: InMemoryValueStorage = field(default_factory=InMemoryValueStorage)
    series: dict[str, str] = field(default_factory=dict)
    default_series: str | None = None
    forwarded: int | Exception | None = None

    def dispatch(self, name: str, value: int, time: float) -> None:
        host, plugin = name.split("/", 1)
        self.daemon.dispatch(
            ValueList(
                values=[value],
                host=host,
                plugin=plugin,
                type=self.series[name],
                time=time,
                meta={"series": name},
            )
        )

    def rates(self) -> list[ValueList]:
        return [v for v in self.storage.read_sync() if v.plugin == "rate"]


@pytest.fixture
def ctx() -> RateScenarioContext:
    """Fresh scenario context for each test."""
    return RateScenarioContext()


# === Given ===


@given("a daemon with the rate writer registered")
def given_daemon(ctx: RateScenarioContext) -> None:
    """Register the rate writer and a storage writer, then initialise."""
    RateWriter(ctx.daemon.history, ctx.daemon).register(ctx.daemon)
    ctx.daemon.register_write("store", storage_writer(ctx.storage))
    ctx.daemon.init()


@given(parsers.parse('a series "{name}" of type "{type_name}"'))
def given_series(ctx: RateScenarioContext, name: str, type_name: str) -> None:
    """Declare a series; the first one declared is the default."""
    ctx.series[name] = type_name
    if ctx.default_series is None:
        ctx.default_series = name


@given("the rate target in the filter chain")
def given_rate_target(ctx: RateScenarioContext) -> None:
    """Append a rate target instance to the daemon's chain."""
    RateTarget(ctx.daemon.history).register(ctx.daemon)
    ctx.daemon.chain_append("rate")


# === When ===


@when(parsers.parse("the value {value:d} is dispatched at time {time:d}"))
def when_value_dispatched(ctx: RateScenarioContext, value: int, time: int) -> None:
    """Dispatch one sample of the default series."""
    assert ctx.default_series is not None
    ctx.dispatch(ctx.default_series, value, float(time))


@when(
    parsers.parse(
        'the values {first:d} then {second:d} are dispatched for "{name}" '
        "at times {t0:d} and {t1:d}"
    )
)
def when_two_values_dispatched(
    ctx: RateScenarioContext, first: int, second: int, name: str, t0: int, t1: int
) -> None:
    """Dispatch two consecutive samples of a series."""
    ctx.dispatch(name, first, float(t0))
    ctx.dispatch(name, second, float(t1))


@when("the daemon reads its plugins")
def when_daemon_reads(ctx: RateScenarioContext) -> None:
    """Run one read tick."""
    ctx.forwarded = ctx.daemon.read_all()["rate"]


# === Then ===


@then(
    parsers.re(r"(?P<count>\d+) rates? (?:is|are) forwarded"),
    converters={"count": int},
)
def then_rates_forwarded(ctx: RateScenarioContext, count: int) -> None:
    """The read tick forwarded exactly ``count`` rates."""
    assert ctx.forwarded == count
    assert len(ctx.rates()) == count


@then(
    parsers.parse(
        'the forwarded rate of "{name}" is {rate:g} under the "{tag}" source tag'
    )
)
def then_forwarded_rate(
    ctx: RateScenarioContext, name: str, rate: float, tag: str
) -> None:
    """The rate of the named series was stored under the given tag."""
    (stored,) = [v for v in ctx.rates() if v.meta and v.meta["series"] == name]
    assert stored.plugin == tag
    assert stored.values == [rate]


@then(parsers.parse('the rates are forwarded in the order "{first}", "{second}"'))
def then_forward_order(ctx: RateScenarioContext, first: str, second: str) -> None:
    """Forwarded rates arrive most recent first."""
    assert [v.meta["series"] for v in ctx.rates() if v.meta] == [first, second]


@then(parsers.parse("a second read forwards {count:d} rates"))
def then_second_read(ctx: RateScenarioContext, count: int) -> None:
    """The queue was emptied by the previous read."""
    assert ctx.daemon.read_all()["rate"] == count


@then(
    parsers.parse(
        'the stored values of "{name}" are {value:d} under the "{tag}" source tag'
    )
)
def then_stored_values(
    ctx: RateScenarioContext, name: str, value: int, tag: str
) -> None:
    """The filter chain rewrote the values without retagging them."""
    stored = [v for v in ctx.storage.read_sync() if v.plugin == tag]
    assert [v.values for v in stored] == [[value]]
