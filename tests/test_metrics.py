from progress_table.monitoring.metrics import MetricsRegistry


def test_metrics_registry_counters():
    registry = MetricsRegistry()
    registry.inc("rows_ingested")
    registry.inc("rows_ingested", 4)
    registry.inc("renders_skipped_width")
    assert registry.get("rows_ingested") == 5
    assert registry.get("missing") == 0.0
    assert registry.as_dict() == {"rows_ingested": 5.0, "renders_skipped_width": 1.0}
