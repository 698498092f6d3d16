"""Core memory recording utilities.

Design by Contract (P1 - MANDATORY):
- Elapsed time MUST be non-negative (crash if negative)
- Counters MUST be non-negative kilobytes (crash if negative)
- Labels MUST be strings (beartype), insertion order is report order
- OS read failures degrade to a zero sample, they never raise

Public entry points use beartype for runtime type enforcement.
Memory readings come from psutil.
"""

import functools
import sys
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import NamedTuple

import psutil
from beartype import beartype
from loguru import logger

SUPPORTED_PLATFORMS: tuple[str, ...] = ("linux", "netbsd")


class MemoryCounters(NamedTuple):
    """Process memory counters, all in kilobytes."""

    virtual: int
    resident: int
    shared: int
    code: int
    data: int

    @classmethod
    def zero(cls) -> "MemoryCounters":
        """Sentinel used when the OS could not be read."""
        return cls(0, 0, 0, 0, 0)


@dataclass(frozen=True)
class MemorySample:
    """One labelled reading.

    Attributes:
        elapsed_seconds: Seconds since the owning log was created (MUST be >= 0)
        label: Free-form checkpoint description
        counters: Memory counters at that checkpoint
    """

    elapsed_seconds: float
    label: str
    counters: MemoryCounters

    def __post_init__(self) -> None:
        assert self.elapsed_seconds >= 0, (
            f"Elapsed time cannot be negative: {self.elapsed_seconds:.6f}s. "
            f"Clock went backwards or timing bug."
        )
        assert all(value >= 0 for value in self.counters), (
            f"Memory counters must be non-negative: {self.counters}"
        )


class MemoryLog:
    """Append-only, chronologically ordered sequence of samples.

    Samples are never reordered or deduplicated; a label may repeat.
    """

    def __init__(self, created_at: float) -> None:
        self.created_at = created_at
        self._samples: list[MemorySample] = []

    def append(self, sample: MemorySample) -> None:
        self._samples.append(sample)

    @property
    def samples(self) -> tuple[MemorySample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[MemorySample]:
        return iter(self.samples)


@functools.cache
def memory_counters_supported() -> bool:
    """Return True when this platform exposes per-process memory accounting.

    Computed once per process. On unsupported platforms a single warning is
    logged here, never per request.
    """
    supported = sys.platform.startswith(SUPPORTED_PLATFORMS)
    if not supported:
        logger.warning(
            f"OS not supported by memusage_profiling ({sys.platform}); "
            f"stats will not be collected"
        )
    return supported


def read_process_counters() -> MemoryCounters:
    """Read the current process memory counters in kilobytes.

    psutil reports bytes. Fields missing on the running platform read as 0.
    A failed read returns ``MemoryCounters.zero()``.
    """
    try:
        info = psutil.Process().memory_info()
    except (psutil.Error, OSError) as exc:
        logger.debug(f"Could not read process memory counters: {exc!r}")
        return MemoryCounters.zero()

    return MemoryCounters(
        virtual=getattr(info, "vms", 0) // 1024,
        resident=getattr(info, "rss", 0) // 1024,
        shared=getattr(info, "shared", 0) // 1024,
        code=getattr(info, "text", 0) // 1024,
        data=getattr(info, "data", 0) // 1024,
    )


class Recorder:
    """Holds the active MemoryLog for one unit of work and populates it.

    Not thread-safe: each concurrently processed request needs its own
    Recorder.

    Args:
        read_counters: Callable returning the current MemoryCounters
        clock: Monotonic clock in seconds

    Example:
        recorder = Recorder()
        recorder.record("preparing for the request")
        big_stuff()
        recorder.record("done with big_stuff()")
        print(report(recorder.log))
    """

    @beartype
    def __init__(
        self,
        read_counters: Callable[[], MemoryCounters] = read_process_counters,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._read_counters = read_counters
        self._clock = clock
        self._log = MemoryLog(created_at=clock())

    @property
    def log(self) -> MemoryLog:
        return self._log

    def reset(self) -> None:
        """Discard the active log, along with its samples, and start a new one."""
        self._log = MemoryLog(created_at=self._clock())

    @beartype
    def record(self, label: str) -> None:
        """Append a sample of the current memory counters under ``label``."""
        counters = self._read_counters()
        elapsed = self._clock() - self._log.created_at
        self._log.append(
            MemorySample(elapsed_seconds=elapsed, label=label, counters=counters)
        )
