import pytest

from progress_table.config.config import (
    create_default_config,
    load_config,
    save_config,
    validate_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "PROGRESS_TABLE_CONFIG",
        "PROGRESS_TABLE_ENV",
        "PROGRESS_TABLE_SHOW_TABLE",
        "PROGRESS_TABLE_REFRESH_INTERVAL",
    ):
        monkeypatch.delenv(var, raising=False)


def test_load_config_with_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("WATCH_PID", "4242")
    path = tmp_path / "config.yaml"
    path.write_text(
        "display:\n"
        "  refresh_interval: 0.5\n"
        "source:\n"
        "  kind: psutil\n"
        "  pid: ${WATCH_PID}\n"
        "logging:\n"
        "  level: ${PROGRESS_TABLE_TEST_LOG_LEVEL:DEBUG}\n"
        "  component_levels:\n"
        "    progress_table.registry: WARNING\n"
    )
    cfg = load_config(str(path))
    assert cfg.display.refresh_interval == 0.5
    assert cfg.source.pid == 4242
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.component_levels == {"progress_table.registry": "WARNING"}


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("display:\n  show_table: true\n")
    monkeypatch.setenv("PROGRESS_TABLE_SHOW_TABLE", "false")
    monkeypatch.setenv("PROGRESS_TABLE_REFRESH_INTERVAL", "2.5")
    cfg = load_config(str(path))
    assert cfg.display.show_table is False
    assert cfg.display.refresh_interval == 2.5


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "other.yaml"
    path.write_text("source:\n  kind: jsonl\n  path: events.jsonl\n")
    monkeypatch.setenv("PROGRESS_TABLE_CONFIG", str(path))
    cfg = load_config()
    assert cfg.source.kind == "jsonl"
    assert cfg.source.path == "events.jsonl"


def test_missing_env_var_is_an_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  sentry_dsn: ${PROGRESS_TABLE_TEST_UNSET_DSN}\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_validation_rejects_bad_values():
    cfg = create_default_config()
    validate_config(cfg)

    cfg.source.kind = "kafka"
    with pytest.raises(ValueError):
        validate_config(cfg)

    cfg = create_default_config()
    cfg.display.refresh_interval = 0
    with pytest.raises(ValueError):
        validate_config(cfg)

    cfg = create_default_config()
    cfg.logging.component_levels = {"progress_table": "LOUD"}
    with pytest.raises(ValueError):
        validate_config(cfg)


def test_save_and_load(tmp_path):
    cfg = create_default_config()
    cfg.source.kind = "jsonl"
    cfg.source.path = "events.jsonl"
    cfg.display.toggle_enabled = True
    path = tmp_path / "saved.yaml"
    save_config(cfg, str(path))
    assert load_config(str(path)) == cfg
