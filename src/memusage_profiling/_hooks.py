"""Request lifecycle hooks.

The host calls these explicitly at request start, after each dispatched
action and at request end. Nothing here wraps or patches host methods.
"""

import time
from collections.abc import Callable, Generator
from contextlib import contextmanager

from beartype import beartype
from loguru import logger

from memusage_profiling._core import (
    MemoryCounters,
    Recorder,
    memory_counters_supported,
    read_process_counters,
)
from memusage_profiling._report import report

PREPARE_LABEL = "preparing for the request"
REPORT_MESSAGE = "memory usage of request"


class RequestMemoryProfiler:
    """Per-application switchboard for request memory profiling.

    Args:
        debug: Host debug flag; profiling defaults to it
        enabled: Explicit override. False always opts out. True cannot
            force profiling on an unsupported platform.
        read_counters: Counter reader handed to every Recorder
        clock: Monotonic clock handed to every Recorder

    Example:
        profiler = RequestMemoryProfiler(debug=app.debug)

        recorder = profiler.prepare()
        handler(request, memory_usage=recorder)
        profiler.after_execute(recorder, "Controller::Root", "index")
        profiler.finalize(recorder)
    """

    @beartype
    def __init__(
        self,
        debug: bool,
        enabled: bool | None = None,
        read_counters: Callable[[], MemoryCounters] = read_process_counters,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        wanted = debug if enabled is None else enabled
        self._enabled = memory_counters_supported() and wanted
        self._read_counters = read_counters
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    @beartype
    def enabled(self, value: bool) -> None:
        self._enabled = memory_counters_supported() and value

    def prepare(self) -> Recorder:
        """Start a request: hand out a fresh Recorder.

        The Recorder is returned even when profiling is disabled so that
        application code can always call ``record()`` on it.
        """
        recorder = Recorder(read_counters=self._read_counters, clock=self._clock)
        if self._enabled:
            recorder.record(PREPARE_LABEL)
        return recorder

    @beartype
    def after_execute(self, recorder: Recorder, *names: str) -> None:
        """Checkpoint after a dispatched action, e.g. ``("Controller::Root", "index")``."""
        if not self._enabled:
            return
        recorder.record("after " + " : ".join(names))

    @beartype
    def finalize(self, recorder: Recorder) -> str | None:
        """End a request: log the memory table at DEBUG and return it."""
        if not self._enabled:
            return None
        text = report(recorder.log)
        logger.debug(f"{REPORT_MESSAGE}\n{text}")
        return text


@beartype
@contextmanager
def profile_request(profiler: RequestMemoryProfiler) -> Generator[Recorder, None, None]:
    """Context manager wrapping one request with prepare/finalize.

    The table is still logged when the wrapped code raises; the exception
    propagates unchanged.

    Args:
        profiler: Application-wide RequestMemoryProfiler

    Yields:
        Recorder for the request
    """
    recorder = profiler.prepare()
    try:
        yield recorder
    finally:
        profiler.finalize(recorder)
