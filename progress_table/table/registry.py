from __future__ import annotations

import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import Callable, Iterable, List, Mapping, Optional, Protocol

from ..monitoring.metrics import metrics
from ..utils.terminal import get_terminal_width
from .events import AGGREGATE_SCOPE_ID, EVENT_CATALOG, EventInfo, ProfileEventRow
from .render import (
    COLUMN_EVENT_NAME_MIN_WIDTH,
    render_clear,
    render_final,
    render_hidden,
    render_live,
)
from .series import MetricAggregate

logger = logging.getLogger("progress_table.registry")


class MessageSink(Protocol):
    def write(self, s: str) -> int: ...

    def flush(self) -> None: ...


class MetricRegistry:
    """Shared state of the progress table.

    Metrics are kept most-recently-updated first. Every public method holds
    the lock for its whole duration, so ingestion running on the producer
    thread never interleaves with a render on the ticker.

    ``names()``, ``get()`` and ``len()`` are read-only views for inspection;
    rendering goes through the ``write_*`` methods.
    """

    def __init__(
        self,
        catalog: Mapping[str, EventInfo] = EVENT_CATALOG,
        *,
        clock: Callable[[], float] = time.monotonic,
        terminal_width: Callable[[], int] = get_terminal_width,
    ) -> None:
        self._catalog = catalog
        self._clock = clock
        self._terminal_width = terminal_width
        self._metrics: "OrderedDict[str, MetricAggregate]" = OrderedDict()
        self._lock = Lock()
        self._started_at = clock()
        self.name_width = COLUMN_EVENT_NAME_MIN_WIDTH

    def _elapsed(self) -> float:
        return self._clock() - self._started_at

    def elapsed(self) -> float:
        with self._lock:
            return self._elapsed()

    def ingest(self, rows: Iterable[ProfileEventRow]) -> int:
        """Fold one batch into the table and return the number of rows kept."""
        with self._lock:
            now = self._elapsed()
            scoped = []
            for row in rows:
                if row.scope_id != AGGREGATE_SCOPE_ID:
                    metrics.inc("rows_dropped_scope")
                    continue
                scoped.append((row.name, row))

            # Names descending so that, as each one is promoted to the front,
            # the batch ends up in ascending order at the top of the table.
            # The sort is stable, so rows of one name keep their arrival order.
            scoped.sort(key=lambda item: item[0], reverse=True)

            accepted = 0
            for name, row in scoped:
                if name not in self._catalog:
                    metrics.inc("rows_dropped_unknown")
                    logger.debug("Skipping unknown event %s", name)
                    continue
                if row.value == 0:
                    metrics.inc("rows_dropped_zero")
                    continue

                aggregate = self._metrics.get(name)
                if aggregate is None:
                    aggregate = self._metrics[name] = MetricAggregate()
                self._metrics.move_to_end(name, last=False)
                aggregate.record(row.host, row.kind, row.value, now)

                self.name_width = max(self.name_width, len(name) + 1)
                accepted += 1

            metrics.inc("batches_ingested")
            metrics.inc("rows_ingested", accepted)
            return accepted

    def write_table(
        self, sink: MessageSink, show_table: bool = True, toggle_enabled: bool = False
    ) -> None:
        with self._lock:
            if not show_table and toggle_enabled:
                sink.write(render_hidden())
                sink.flush()
                return

            terminal_width = self._terminal_width()
            text = render_live(
                list(self._metrics.items()),
                name_width=self.name_width,
                terminal_width=terminal_width,
                now=self._elapsed(),
                catalog=self._catalog,
            )
            if not text:
                if self._metrics:
                    metrics.inc("renders_skipped_width")
                else:
                    metrics.inc("renders_skipped_empty")
                return
            sink.write(text)
            sink.flush()

    def clear_table_output(self, sink: MessageSink) -> None:
        with self._lock:
            sink.write(render_clear())
            sink.flush()

    def write_final_table(self, sink: MessageSink) -> None:
        with self._lock:
            text = render_final(
                list(self._metrics.items()),
                name_width=self.name_width,
                terminal_width=self._terminal_width(),
                catalog=self._catalog,
            )
            if text:
                sink.write(text)
                sink.flush()

    def reset(self) -> None:
        """Forget every metric and restart the elapsed clock, e.g. on query restart."""
        with self._lock:
            self._metrics.clear()
            self._started_at = self._clock()
            logger.debug("Progress table reset")

    def fresh_count(self, now: Optional[float] = None) -> int:
        with self._lock:
            if now is None:
                now = self._elapsed()
            return sum(1 for aggregate in self._metrics.values() if aggregate.is_fresh(now))

    def names(self) -> List[str]:
        with self._lock:
            return list(self._metrics)

    def get(self, name: str) -> Optional[MetricAggregate]:
        with self._lock:
            return self._metrics.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)
