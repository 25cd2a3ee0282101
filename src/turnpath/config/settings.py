"""Runtime settings derived from a validated configuration."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from turnpath.config.schema import ConfigSchema, SinkSchema
from turnpath.observability import (
    ConsoleSink,
    FileSink,
    MemorySink,
    NullSink,
    ObservabilityHub,
    Sink,
    TraceLevel,
)


@dataclass(frozen=True)
class FlowSettings:
    """Tunable bounds for a FlowDriver.

    Attributes:
        max_loop_iterations: Iterations any single loop may run before
            EndlessLoopError is raised.
        max_steps: Synchronous steps allowed between two suspensions.
        debug: Print interpreter transitions.
    """

    max_loop_iterations: int = 10_000
    max_steps: int = 100_000
    debug: bool = False

    def __post_init__(self) -> None:
        if self.max_loop_iterations < 1 or self.max_steps < 1:
            raise ValueError("FlowSettings bounds must be positive")

    @classmethod
    def from_config(cls, config: ConfigSchema) -> "FlowSettings":
        return cls(
            max_loop_iterations=config.interpreter.max_loop_iterations,
            max_steps=config.interpreter.max_steps,
            debug=config.interpreter.debug,
        )


def create_sink(schema: SinkSchema) -> Sink:
    """Build a trace sink from its configuration."""
    if schema.type == "file":
        return FileSink(schema.path, **schema.options)
    if schema.type == "console":
        return ConsoleSink(**schema.options)
    if schema.type == "memory":
        return MemorySink(**schema.options)
    return NullSink()


def apply_config(config: ConfigSchema, hub: Optional[ObservabilityHub] = None) -> FlowSettings:
    """Configure logging and tracing, and return the interpreter settings."""
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    hub = hub or ObservabilityHub.get_instance()
    sinks: List[Sink] = [create_sink(s) for s in config.observability.sinks]
    hub.configure(level=TraceLevel[config.observability.level.upper()], sinks=sinks)

    return FlowSettings.from_config(config)


__all__ = ["FlowSettings", "create_sink", "apply_config"]
