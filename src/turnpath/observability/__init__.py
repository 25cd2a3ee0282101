"""Tracing for flow runs.

A run can report three kinds of events:
- node transitions (reset, advance, repeat, exit, interrupt)
- suspensions on action steps and the moves that resume them
- completion of the root node

Trace Levels:
- OFF: nothing is recorded (default)
- MINIMAL: completion only
- NORMAL: suspensions and moves
- VERBOSE: every transition

Example:
    >>> from turnpath.observability import ObservabilityHub, TraceLevel, MemorySink
    >>> sink = MemorySink()
    >>> ObservabilityHub.get_instance().configure(TraceLevel.NORMAL, sinks=[sink])
    >>> driver = FlowDriver(game_flow, players=players)
    >>> driver.start()
    >>> sink.get_records("suspension")
"""

import logging
import threading
from enum import IntEnum
from typing import List, Optional

logger = logging.getLogger(__name__)


class TraceLevel(IntEnum):
    """How much of a run is traced. Each level includes the ones below it."""
    OFF = 0
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3


class Sink:
    """Destination for trace records."""

    def write(self, record: "TraceRecord") -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class ObservabilityHub:
    """Process-wide trace level and sink registry.

    Use ``get_instance()``. Engine code checks ``enabled`` before it builds
    a record, so a run with tracing OFF never allocates one. Interpreters
    look the hub up once when they are created; configure it first.

    A sink that raises is logged and skipped. Tracing never aborts a run.
    """

    _instance: Optional["ObservabilityHub"] = None
    _lock = threading.Lock()

    def __init__(self):
        self._level = TraceLevel.OFF
        self._sinks: List[Sink] = []
        self._sinks_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "ObservabilityHub":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close the current hub and forget it. Used by tests."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
            cls._instance = None

    @property
    def level(self) -> TraceLevel:
        return self._level

    @property
    def enabled(self) -> bool:
        return self._level > TraceLevel.OFF

    def configure(
        self,
        level: TraceLevel = TraceLevel.OFF,
        sinks: Optional[List[Sink]] = None,
    ) -> None:
        """Set the trace level and register any given sinks."""
        self._level = TraceLevel(level)
        for sink in sinks or ():
            self.add_sink(sink)

    def add_sink(self, sink: Sink) -> None:
        with self._sinks_lock:
            self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        with self._sinks_lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def emit(self, record: "TraceRecord") -> None:
        """Hand a record to every sink if the level admits it."""
        if record.min_level > self._level or not self.enabled:
            return
        with self._sinks_lock:
            sinks = list(self._sinks)
        for sink in sinks:
            try:
                sink.write(record)
            except Exception as e:
                logger.warning("Trace sink %s failed: %s", type(sink).__name__, e)

    def flush(self) -> None:
        with self._sinks_lock:
            sinks = list(self._sinks)
        for sink in sinks:
            try:
                sink.flush()
            except Exception as e:
                logger.warning("Trace sink %s failed to flush: %s", type(sink).__name__, e)

    def shutdown(self) -> None:
        """Flush and close every sink, then turn tracing off."""
        with self._sinks_lock:
            sinks, self._sinks = self._sinks, []
        for sink in sinks:
            try:
                sink.flush()
                sink.close()
            except Exception as e:
                logger.warning("Trace sink %s failed to close: %s", type(sink).__name__, e)
        self._level = TraceLevel.OFF


# records and sinks import TraceLevel and Sink from this module
from turnpath.observability.records import TraceRecord  # noqa: E402
from turnpath.observability.sinks import FileSink, ConsoleSink, MemorySink, NullSink  # noqa: E402

__all__ = [
    "TraceLevel",
    "Sink",
    "ObservabilityHub",
    "TraceRecord",
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
