from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict

from .events import ValueKind

# A sample arriving later than this after the previous one starts a new rate window.
INGESTION_GAP_SECONDS = 0.5
# Minimum span of the window the rate is computed over.
RATE_WINDOW_SECONDS = 0.5
FRESHNESS_THRESHOLD_SECONDS = 3.0


@dataclass
class Snapshot:
    value: int = 0
    time: float = 0.0


class MetricSeries:
    """Value and smoothed rate of one metric reported by one host.

    ``previous`` and ``current`` lag behind ``latest`` by about half a second
    and are what :meth:`rate` is computed from. Computing the rate from
    ``latest`` would divide by the tiny interval between two closely spaced
    samples and make the number jump around.
    """

    def __init__(self, kind: ValueKind) -> None:
        self.kind = kind
        self.previous = Snapshot()
        self.current = Snapshot()
        self.latest = Snapshot()
        self.last_update_time = 0.0
        self._has_samples = False

    def apply(self, value: int, now: float) -> None:
        if not self._has_samples or now - self.latest.time >= INGESTION_GAP_SECONDS:
            self._rebase(now)
        self._has_samples = True

        if self.kind == ValueKind.CUMULATIVE:
            self.latest.value += value
        else:
            self.latest.value = value
        self.latest.time = now

        if self.latest.time - self.current.time >= RATE_WINDOW_SECONDS:
            self.previous = self.current
            self.current = replace(self.latest)

        self.last_update_time = now

    def _rebase(self, now: float) -> None:
        # Forget the old window after silence so the next burst is not a spike.
        self.previous = Snapshot(self.latest.value, now - 1.0)
        self.current = Snapshot(self.latest.value, now - 1.0)

    def rate(self, now: float) -> float:
        if now - self.latest.time >= INGESTION_GAP_SECONDS:
            return 0.0
        return (self.current.value - self.previous.value) / (
            self.current.time - self.previous.time
        )

    def value(self) -> int:
        return self.latest.value

    def is_fresh(self, now: float) -> bool:
        return (
            self.last_update_time != 0
            and now - self.last_update_time <= FRESHNESS_THRESHOLD_SECONDS
        )


class MetricAggregate:
    """All hosts' series for one metric name."""

    def __init__(self) -> None:
        self.hosts: Dict[str, MetricSeries] = {}
        self.max_rate = 0.0

    def record(self, host: str, kind: ValueKind, value: int, now: float) -> None:
        series = self.hosts.get(host)
        if series is None:
            series = self.hosts[host] = MetricSeries(kind)
        series.apply(value, now)

    def total_value(self) -> float:
        return float(sum(series.value() for series in self.hosts.values()))

    def total_rate(self, now: float) -> float:
        return sum((series.rate(now) for series in self.hosts.values()), 0.0)

    def record_and_get_rate(self, now: float) -> float:
        """Return :meth:`total_rate` and fold it into ``max_rate``.

        Colors are scaled against the peak seen before this tick, so read
        ``max_rate`` first and call this afterwards.
        """
        rate = self.total_rate(now)
        self.max_rate = max(self.max_rate, rate)
        return rate

    def is_fresh(self, now: float) -> bool:
        return any(series.is_fresh(now) for series in self.hosts.values())
