"""Trace sinks.

- FileSink: one JSON object per line
- ConsoleSink: short human-readable lines
- MemorySink: bounded in-memory buffer, for tests and notebooks
- NullSink: drops everything
"""

import sys
import threading
from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional, TextIO

from turnpath.observability import Sink
from turnpath.observability.records import (
    TraceRecord,
    TransitionRecord,
    SuspensionRecord,
    MoveRecord,
    FlowCompleteRecord,
)

RecordFormatter = Callable[[TraceRecord], Optional[str]]


class FileSink(Sink):
    """Append records to a JSONL file.

    Lines are buffered and written every ``buffer_size`` records, on
    ``flush()`` and on ``close()``. Parent directories are created.

    Example:
        >>> sink = FileSink("/tmp/turnpath/trace.jsonl")
        >>> ObservabilityHub.get_instance().configure(TraceLevel.VERBOSE, [sink])
    """

    def __init__(self, path: str, buffer_size: int = 100, append: bool = False):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: Optional[TextIO] = open(self._path, "a" if append else "w", encoding="utf-8")
        self._buffer_size = max(1, buffer_size)
        self._pending: List[str] = []
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, record: TraceRecord) -> None:
        line = record.to_json()
        with self._lock:
            self._pending.append(line)
            if len(self._pending) >= self._buffer_size:
                self._drain()

    def _drain(self) -> None:
        # caller holds the lock
        if self._file is None or not self._pending:
            return
        self._file.write("".join(line + "\n" for line in self._pending))
        self._file.flush()
        self._pending.clear()

    def flush(self) -> None:
        with self._lock:
            self._drain()

    def close(self) -> None:
        with self._lock:
            self._drain()
            if self._file is not None:
                self._file.close()
                self._file = None


def format_record(record: TraceRecord, paint: Callable[[str, str], str]) -> Optional[str]:
    """One console line for a record, or None for record types without one."""
    if isinstance(record, TransitionRecord):
        line = f"{paint(f'[{record.phase.upper()}]', 'gray')} {record.node}"
        if record.index is not None:
            line += f" index={record.index}"
        if record.value is not None:
            line += f" value={record.value}"
        return line
    if isinstance(record, SuspensionRecord):
        seats = ", ".join(str(seat) for seat in record.players) or "-"
        return f"{paint('[AWAIT]', 'cyan')} {record.node}: {', '.join(record.actions)} (players {seats})"
    if isinstance(record, MoveRecord):
        if record.accepted:
            return f"{paint('[MOVE]', 'green')} player #{record.player} {record.action} at {record.node}"
        return f"{paint('[REJECT]', 'red')} player #{record.player} {record.action}: {record.reason}"
    if isinstance(record, FlowCompleteRecord):
        return f"{paint('[DONE]', 'yellow')} {record.root} complete"
    return None


class ConsoleSink(Sink):
    """Write one line per record to a stream (stderr by default).

    Colors are used only when the stream is a terminal. ``format_fn`` may
    replace the default layout; returning None skips a record.
    """

    COLORS = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "cyan": "\033[96m",
        "gray": "\033[90m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: bool = True,
        format_fn: Optional[RecordFormatter] = None,
    ):
        self._stream = stream or sys.stderr
        isatty = getattr(self._stream, "isatty", None)
        self._color = color and callable(isatty) and isatty()
        self._format_fn = format_fn
        self._lock = threading.Lock()

    def _paint(self, text: str, color: str) -> str:
        if not self._color:
            return text
        return f"{self.COLORS[color]}{text}{self.RESET}"

    def write(self, record: TraceRecord) -> None:
        if self._format_fn is not None:
            line = self._format_fn(record)
        else:
            line = format_record(record, self._paint)
        if not line:
            return
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()

    def flush(self) -> None:
        with self._lock:
            self._stream.flush()


class MemorySink(Sink):
    """Keep the most recent ``max_records`` records in memory.

    Example:
        >>> sink = MemorySink()
        >>> hub.add_sink(sink)
        >>> driver.resume(move)
        >>> [r.action for r in sink.get_records("move")]
    """

    def __init__(self, max_records: int = 10000):
        self._records: Deque[TraceRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        with self._lock:
            self._records.append(record)

    def _snapshot(self) -> List[TraceRecord]:
        with self._lock:
            return list(self._records)

    def get_records(self, record_type: Optional[str] = None) -> List[TraceRecord]:
        """Stored records, oldest first, optionally of one type."""
        records = self._snapshot()
        if record_type:
            return [r for r in records if r.record_type == record_type]
        return records

    def get_by_node(self, node: str) -> List[TraceRecord]:
        """Stored records about one node label, e.g. ``"action:turn"``."""
        return [r for r in self._snapshot() if getattr(r, "node", None) == node]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class NullSink(Sink):
    """Discard every record."""

    def write(self, record: TraceRecord) -> None:
        pass


__all__ = [
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
    "format_record",
]
