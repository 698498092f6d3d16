"""memusage-profiling: Per-request process memory snapshots with a delta table.

Provides:
- Recorder: Ordered, labelled log of process memory counters for one request
- render / report: Aligned table of counters with deltas between checkpoints
- RequestMemoryProfiler: Explicit request-start / after-action / request-end hooks
- profile_request: Convenience context manager combining the three hooks
- memory_counters_supported: One-time platform capability flag

Usage:
    from memusage_profiling import RequestMemoryProfiler, profile_request

    profiler = RequestMemoryProfiler(debug=True)

    with profile_request(profiler) as memory_usage:
        result = handle(request)
        memory_usage.record("finished running iffy code")
        profiler.after_execute(memory_usage, "Controller::Root", "index")
"""

from memusage_profiling._core import (
    MemoryCounters,
    MemoryLog,
    MemorySample,
    Recorder,
    memory_counters_supported,
    read_process_counters,
)
from memusage_profiling._hooks import RequestMemoryProfiler, profile_request
from memusage_profiling._report import RenderedReport, format_bytes, render, report

__all__ = [
    "MemoryCounters",
    "MemoryLog",
    "MemorySample",
    "Recorder",
    "RenderedReport",
    "RequestMemoryProfiler",
    "format_bytes",
    "memory_counters_supported",
    "profile_request",
    "read_process_counters",
    "render",
    "report",
]

__version__ = "0.1.0"
