import json

import pytest

from progress_table.monitoring.metrics import metrics
from progress_table.sources.jsonl_source import JsonLinesEventSource, parse_batch
from progress_table.table.events import ValueKind
from progress_table.utils.errors import SourceError


def test_parse_batch_defaults():
    rows = parse_batch([{"name": "SelectedRows", "value": 5}], "local")
    assert len(rows) == 1
    assert rows[0].scope_id == 0
    assert rows[0].host == "local"
    assert rows[0].kind == ValueKind.CUMULATIVE


def test_parse_batch_object_form():
    rows = parse_batch(
        {"rows": [{"name": "ThreadCount", "value": 3, "kind": 1, "host": "h2", "scope_id": 9}]},
        "local",
    )
    assert rows[0].kind == ValueKind.GAUGE
    assert rows[0].host == "h2"
    assert rows[0].scope_id == 9


@pytest.mark.parametrize(
    "batch",
    [
        {"no_rows": []},
        [{"value": 1}],
        [{"name": "SelectedRows", "value": "many"}],
        [{"name": "SelectedRows", "value": 1, "kind": 5}],
        ["SelectedRows"],
    ],
)
def test_parse_batch_rejects_malformed(batch):
    with pytest.raises(ValueError):
        parse_batch(batch, "local")


def test_feed_skips_invalid_lines_and_handles_reset(make_registry, clock):
    registry = make_registry()
    clock.advance(1.0)
    source = JsonLinesEventSource(host="local")
    before = metrics.get("source_lines_invalid")
    lines = [
        json.dumps([{"name": "SelectedRows", "value": 10}]),
        "not json",
        "",
        json.dumps([{"name": "Query", "value": 1, "scope_id": None}]),
        json.dumps({"reset": True}),
        json.dumps({"rows": [{"name": "InsertedRows", "value": 2}]}),
    ]
    assert source.feed(iter(lines), registry) == 2
    assert metrics.get("source_lines_invalid") == before + 2
    assert registry.names() == ["InsertedRows"]


def test_run_reads_file(tmp_path, make_registry, clock):
    path = tmp_path / "events.jsonl"
    path.write_text(
        json.dumps([{"name": "SelectedRows", "value": 10, "host": "a"}])
        + "\n"
        + json.dumps([{"name": "SelectedRows", "value": 5, "host": "b"}])
        + "\n"
    )
    registry = make_registry()
    clock.advance(1.0)
    assert JsonLinesEventSource(str(path)).run(registry) == 2
    assert registry.get("SelectedRows").total_value() == 15.0


def test_run_missing_file(tmp_path, make_registry):
    with pytest.raises(SourceError):
        JsonLinesEventSource(str(tmp_path / "absent.jsonl")).run(make_registry())


def test_run_skips_undecodable_line(tmp_path, make_registry, clock):
    path = tmp_path / "events.jsonl"
    path.write_bytes(
        json.dumps([{"name": "SelectedRows", "value": 10}]).encode()
        + b"\n\xff\xfe garbage\n"
        + json.dumps([{"name": "Query", "value": 1}]).encode()
        + b"\n"
    )
    registry = make_registry()
    clock.advance(1.0)
    before = metrics.get("source_lines_invalid")
    assert JsonLinesEventSource(str(path)).run(registry) == 2
    assert metrics.get("source_lines_invalid") == before + 1
    assert registry.names() == ["Query", "SelectedRows"]
