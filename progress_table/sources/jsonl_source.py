from __future__ import annotations

import json
import logging
import socket
import sys
from contextlib import contextmanager
from typing import Any, BinaryIO, Iterable, Iterator, List, Optional, Union

from ..monitoring.metrics import metrics
from ..table.events import AGGREGATE_SCOPE_ID, ProfileEventRow, ValueKind
from ..table.registry import MetricRegistry
from ..utils.errors import SourceError

logger = logging.getLogger("progress_table.sources.jsonl")


def parse_row(data: Any, default_host: str) -> ProfileEventRow:
    if not isinstance(data, dict):
        raise ValueError(f"row must be an object, got {type(data).__name__}")
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError("row is missing 'name'")
    value = data.get("value")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"row '{name}' has a non-integer value")
    kind = data.get("kind", 0)
    if kind not in (0, 1):
        raise ValueError(f"row '{name}' has unknown kind {kind!r}")
    return ProfileEventRow(
        scope_id=int(data.get("scope_id", AGGREGATE_SCOPE_ID)),
        name=name,
        host=str(data.get("host") or default_host),
        value=value,
        kind=ValueKind(kind),
    )


def parse_batch(data: Any, default_host: str) -> List[ProfileEventRow]:
    """Parse either a list of rows or an object with a ``rows`` list."""
    if isinstance(data, dict):
        data = data.get("rows")
    if not isinstance(data, list):
        raise ValueError("batch must be a list of rows or an object with 'rows'")
    return [parse_row(row, default_host) for row in data]


def is_reset(data: Any) -> bool:
    return isinstance(data, dict) and data.get("reset") is True


class JsonLinesEventSource:
    """Read one profiling-event batch per line of JSON.

    A line ``{"reset": true}`` marks a query restart and clears the table.
    Malformed lines are logged and skipped.
    """

    def __init__(self, path: str = "-", *, host: Optional[str] = None) -> None:
        self.path = path
        self.host = host or socket.gethostname()

    @contextmanager
    def _open(self) -> Iterator[BinaryIO]:
        # Lines are decoded one at a time in ``feed`` so a bad byte costs one batch.
        if self.path == "-":
            yield sys.stdin.buffer
            return
        try:
            f = open(self.path, "rb")
        except OSError as e:
            raise SourceError(f"Cannot open event stream {self.path}: {e}") from e
        with f:
            yield f

    def feed(self, lines: Iterable[Union[str, bytes]], registry: MetricRegistry) -> int:
        """Ingest every line into ``registry``; returns the number of batches."""
        batches = 0
        for lineno, line in enumerate(lines, start=1):
            try:
                if isinstance(line, bytes):
                    line = line.decode("utf-8")
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                if is_reset(data):
                    registry.reset()
                    logger.info("Reset requested at line %d", lineno)
                    continue
                rows = parse_batch(data, self.host)
            except (TypeError, ValueError) as e:
                metrics.inc("source_lines_invalid")
                logger.warning("Skipping invalid batch at line %d: %s", lineno, e)
                continue
            registry.ingest(rows)
            batches += 1
        return batches

    def run(self, registry: MetricRegistry) -> int:
        """Blocking read until end of input; meant to run on its own thread."""
        with self._open() as stream:
            batches = self.feed(iter(stream), registry)
        logger.info("Event stream %s ended after %d batches", self.path, batches)
        return batches
