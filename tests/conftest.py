import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from progress_table.table.registry import MetricRegistry


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Sink:
    """Message sink that records writes and flushes."""

    def __init__(self) -> None:
        self.chunks = []
        self.flushes = 0

    def write(self, s: str) -> int:
        self.chunks.append(s)
        return len(s)

    def flush(self) -> None:
        self.flushes += 1

    def getvalue(self) -> str:
        return "".join(self.chunks)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return Sink()


@pytest.fixture
def make_registry(clock):
    def _make(width: int = 120, **kwargs) -> MetricRegistry:
        return MetricRegistry(clock=clock, terminal_width=lambda: width, **kwargs)

    return _make
