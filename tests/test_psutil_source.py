import psutil
import pytest

from progress_table.sources import psutil_source
from progress_table.sources.psutil_source import PsutilEventSource
from progress_table.table.events import EVENT_CATALOG, ProfileEventRow, ValueKind
from progress_table.utils.errors import ProcessExitedError, SourceError


def test_first_sample_only_reports_gauges():
    source = PsutilEventSource(host="local")
    rows = source.sample()
    assert {r.name for r in rows} == {"MemoryResidentBytes", "ThreadCount"}
    assert all(r.kind == ValueKind.GAUGE for r in rows)
    assert all(r.value > 0 for r in rows)


def test_later_samples_report_deltas():
    source = PsutilEventSource(host="local")
    source.sample()
    sum(range(100000))
    rows = source.sample()
    names = {r.name for r in rows}
    assert {"UserTimeMicroseconds", "SystemTimeMicroseconds", "ContextSwitches"} <= names
    assert names <= set(EVENT_CATALOG)
    assert all(r.scope_id == 0 and r.host == "local" for r in rows)
    assert all(r.value >= 0 for r in rows if r.kind == ValueKind.CUMULATIVE)


def test_missing_process(monkeypatch):
    def _raise(pid=None):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(psutil_source.psutil, "Process", _raise)
    with pytest.raises(SourceError):
        PsutilEventSource(pid=999999)


@pytest.mark.asyncio
async def test_run_ingests_until_process_exits(make_registry, clock):
    registry = make_registry()
    clock.advance(1.0)
    source = PsutilEventSource(host="local")
    batches = [[ProfileEventRow(0, "ThreadCount", "local", 4, ValueKind.GAUGE)]]

    def _sample():
        if not batches:
            raise ProcessExitedError("exited")
        return batches.pop()

    source.sample = _sample
    await source.run(registry, interval=0.01)
    assert registry.get("ThreadCount").total_value() == 4.0


def test_access_denied_is_a_source_error(monkeypatch):
    source = PsutilEventSource(host="local")

    def _denied():
        raise psutil.AccessDenied(source.process.pid)

    monkeypatch.setattr(source.process, "memory_info", _denied)
    with pytest.raises(SourceError) as excinfo:
        source.sample()
    assert not isinstance(excinfo.value, ProcessExitedError)


def test_exited_process_is_reported_as_exit(monkeypatch):
    source = PsutilEventSource(host="local")

    def _gone():
        raise psutil.NoSuchProcess(source.process.pid)

    monkeypatch.setattr(source.process, "num_threads", _gone)
    with pytest.raises(ProcessExitedError):
        source.sample()


@pytest.mark.asyncio
async def test_run_propagates_sampling_failures(make_registry):
    source = PsutilEventSource(host="local")

    def _sample():
        raise SourceError("denied")

    source.sample = _sample
    with pytest.raises(SourceError, match="denied"):
        await source.run(make_registry(), interval=0.01)
