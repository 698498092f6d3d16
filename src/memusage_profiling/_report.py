"""Delta-table rendering for a MemoryLog.

Column policy: numeric columns are nominally 4 characters wide and auto-expand
to the widest cell of the column. Widths are computed once per render() call,
so every row of one report lines up. Nothing is truncated.
"""

from dataclasses import dataclass

from beartype import beartype

from memusage_profiling._core import MemoryCounters, MemoryLog

NUMERIC_MIN_WIDTH = 4
LABEL_MIN_WIDTH = 10

COUNTER_HEADERS: tuple[str, ...] = ("vsz", "rss", "shared", "code", "data")
DELTA_HEADER = "diff"

_UNITS = ("B", "K", "M", "G", "T", "P")


@beartype
def format_bytes(num_bytes: int, signed: bool = False) -> str:
    """Format a byte count with the largest fitting binary unit.

    Bytes are shown as integers, larger units with one decimal:
    ``512B``, ``1.0K``, ``44.2M``. With ``signed=True`` positive values
    carry a leading ``+``.
    """
    sign = "-" if num_bytes < 0 else ("+" if signed and num_bytes > 0 else "")
    magnitude = abs(num_bytes)

    if magnitude < 1024:
        return f"{sign}{magnitude}B"

    value = float(magnitude)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    # 1023.96K would print as 1024.0K
    if round(value, 1) >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{sign}{value:.1f}{_UNITS[unit]}"


def _format_kilobytes(kilobytes: int) -> str:
    return format_bytes(kilobytes * 1024)


def _format_delta(kilobytes: int) -> str:
    # unchanged counters stay blank so movement stands out
    if kilobytes == 0:
        return ""
    return format_bytes(kilobytes * 1024, signed=True)


@dataclass(frozen=True)
class RenderedReport:
    """Formatted memory table: one header row and one row per sample.

    Attributes:
        header: Column titles (time, value/diff per counter, label)
        rows: Cell strings, one tuple per sample in log order
        widths: Column widths shared by every row
    """

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    widths: tuple[int, ...]

    @property
    def label_width(self) -> int:
        return self.widths[-1]

    def _format_line(self, cells: tuple[str, ...]) -> str:
        numeric = " ".join(
            cell.rjust(width) for cell, width in zip(cells[:-1], self.widths[:-1])
        )
        return f"{numeric} {cells[-1].ljust(self.label_width)}"

    def to_text(self) -> str:
        lines = [self._format_line(self.header)]
        lines.append("-" * len(lines[0]))
        lines.extend(self._format_line(row) for row in self.rows)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_text()


@beartype
def render(log: MemoryLog) -> RenderedReport:
    """Build the delta table for ``log``.

    The first sample has blank deltas; every later sample shows the signed
    change from the sample right before it.
    """
    header: list[str] = ["time"]
    for name in COUNTER_HEADERS:
        header.extend((name, DELTA_HEADER))
    header.append("label")

    rows: list[tuple[str, ...]] = []
    previous: MemoryCounters | None = None
    for sample in log:
        cells = [str(int(sample.elapsed_seconds))]
        for index, value in enumerate(sample.counters):
            delta = "" if previous is None else _format_delta(value - previous[index])
            cells.extend((_format_kilobytes(value), delta))
        # one line per sample
        cells.append(" ".join(sample.label.splitlines()))
        rows.append(tuple(cells))
        previous = sample.counters

    widths = [
        max(NUMERIC_MIN_WIDTH, len(title), *(len(row[col]) for row in rows))
        for col, title in enumerate(header[:-1])
    ]
    widths.append(max([LABEL_MIN_WIDTH, *(len(row[-1]) for row in rows)]))

    return RenderedReport(header=tuple(header), rows=tuple(rows), widths=tuple(widths))


@beartype
def report(log: MemoryLog) -> str:
    """Render ``log`` as plain text suitable for a log line."""
    return render(log).to_text()
