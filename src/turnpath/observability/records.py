"""Trace record data classes for observability.

Record Categories:
- Base: TraceRecord base class
- Transition: per-node state changes (VERBOSE)
- Turn: suspensions and moves (NORMAL)
- Flow: completion (MINIMAL)
"""

import json
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from turnpath.observability import TraceLevel


@dataclass
class TraceRecord:
    """Base class for all trace records.

    All trace records have:
    - record_type: String identifying the record type
    - timestamp_ns: When the record was created (monotonic)
    - min_level: Minimum trace level required to emit this record
    """
    record_type: str = field(default="base", init=False)
    timestamp_ns: int = field(default_factory=lambda: time.perf_counter_ns())
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to a JSON-ready dictionary."""
        d = asdict(self)
        # min_level is internal
        d.pop("min_level", None)
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class TransitionRecord(TraceRecord):
    """A node changed position (reset, advance, repeat, exit, ...)."""
    record_type: str = field(default="transition", init=False)
    min_level: TraceLevel = field(default=TraceLevel.VERBOSE, repr=False)

    phase: str = ""
    node: str = ""
    kind: str = ""
    index: Optional[int] = None
    value: Optional[str] = None


@dataclass
class SuspensionRecord(TraceRecord):
    """The flow stopped on an action step to wait for a move."""
    record_type: str = field(default="suspension", init=False)
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False)

    node: str = ""
    actions: List[str] = field(default_factory=list)
    players: List[int] = field(default_factory=list)
    steps: int = 0


@dataclass
class MoveRecord(TraceRecord):
    """A move was submitted to a suspended action step."""
    record_type: str = field(default="move", init=False)
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False)

    node: str = ""
    player: int = 0
    action: str = ""
    accepted: bool = True
    reason: str = ""


@dataclass
class FlowCompleteRecord(TraceRecord):
    """The root node completed."""
    record_type: str = field(default="flow_complete", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    root: str = ""
    steps: int = 0


__all__ = [
    "TraceRecord",
    "TransitionRecord",
    "SuspensionRecord",
    "MoveRecord",
    "FlowCompleteRecord",
]
