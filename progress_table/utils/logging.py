import json
import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional

try:  # pragma: no cover - optional dependency
    from sentry_sdk import init as sentry_init
    from sentry_sdk.integrations.logging import LoggingIntegration
except Exception:  # pragma: no cover - optional dependency
    sentry_init = None
    LoggingIntegration = None

from ..config.config import LoggingConfig
from ..monitoring.metrics import metrics


class JsonFormatter(logging.Formatter):
    """Format log records as JSON for analytics."""

    def format(
        self, record: logging.LogRecord
    ) -> str:  # pragma: no cover - formatting only
        standard = logging.makeLogRecord({}).__dict__.keys()
        data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in standard and key not in data:
                data[key] = value
        return json.dumps(data, default=str)


class MetricsHandler(logging.Handler):
    """Wrapper handler that records logging overhead."""

    def __init__(self, handler: logging.Handler) -> None:
        super().__init__(handler.level)
        self.handler = handler
        self.setFormatter(handler.formatter)

    def emit(self, record: logging.LogRecord) -> None:
        start = time.perf_counter()
        self.handler.emit(record)
        metrics.inc("logging_overhead_ms", (time.perf_counter() - start) * 1000)

    def close(self) -> None:
        self.handler.close()
        super().close()


def setup_logging(cfg: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the ``progress_table`` logger.

    The live table owns the terminal, so console output is opt-in and records
    otherwise go to rotating files under ``cfg.log_dir``.
    """
    cfg = cfg or LoggingConfig()
    logger = logging.getLogger("progress_table")

    if logger.handlers:
        return logger

    logs_dir = Path(cfg.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    if cfg.sentry_dsn and sentry_init and LoggingIntegration:
        sentry_logging = LoggingIntegration(
            level=logging.INFO, event_level=logging.ERROR
        )
        sentry_init(dsn=cfg.sentry_dsn, integrations=[sentry_logging])

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s")

    if cfg.console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(fmt)
        logger.addHandler(MetricsHandler(stream_handler))

    file_handler = logging.handlers.RotatingFileHandler(
        logs_dir / "progress_table.log",
        maxBytes=cfg.rotate_mb * 1024 * 1024,
        backupCount=cfg.backup_count,
    )
    file_handler.setFormatter(fmt)
    logger.addHandler(MetricsHandler(file_handler))

    analytics_handler = logging.handlers.RotatingFileHandler(
        logs_dir / "analytics.log",
        maxBytes=cfg.rotate_mb * 1024 * 1024,
        backupCount=cfg.backup_count,
    )
    analytics_handler.setFormatter(JsonFormatter())
    logger.addHandler(MetricsHandler(analytics_handler))

    logger.setLevel(getattr(logging, cfg.level.upper()))
    for name, level in cfg.component_levels.items():
        logging.getLogger(name).setLevel(getattr(logging, level.upper()))

    return logger
