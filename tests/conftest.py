"""Shared fixtures: deterministic counter readers, clocks and loguru capture."""

from collections.abc import Iterable
from types import SimpleNamespace

import pytest
from loguru import logger

from memusage_profiling import MemoryCounters, memory_counters_supported
from memusage_profiling import _core

# Readings taken from a real request profile (kilobytes)
REQUEST_COUNTERS = [
    MemoryCounters(45304, 38640, 3448, 1112, 35168),
    MemoryCounters(46004, 39268, 3456, 1112, 35868),
    MemoryCounters(47592, 40860, 3468, 1112, 37456),
]


class CountingReader:
    """Counter reader that replays fixed readings and counts calls."""

    def __init__(self, readings: Iterable[MemoryCounters]) -> None:
        self._readings = list(readings)
        self.calls = 0

    def __call__(self) -> MemoryCounters:
        reading = self._readings[min(self.calls, len(self._readings) - 1)]
        self.calls += 1
        return reading


class SteppingClock:
    """Clock that advances by a fixed step on every call."""

    def __init__(self, step: float = 0.4) -> None:
        self.now = 100.0
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def request_reader() -> CountingReader:
    return CountingReader(REQUEST_COUNTERS)


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def set_platform(monkeypatch):
    """Pretend to run on another platform for the capability probe."""

    def _set(platform: str) -> None:
        monkeypatch.setattr(_core, "sys", SimpleNamespace(platform=platform))
        memory_counters_supported.cache_clear()

    yield _set
    memory_counters_supported.cache_clear()


@pytest.fixture
def log_records():
    records: list[dict] = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        level="DEBUG",
        format="{message}",
    )
    yield records
    logger.remove(handler_id)
