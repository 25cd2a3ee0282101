"""Pydantic validation models for turnpath configuration.

Defines the schema for YAML configuration files with validation
rules and sensible defaults.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SinkSchema(BaseModel):
    """Configuration for an observability sink.

    Attributes:
        type: Sink type (file, console, memory, null).
        path: File path for file sinks.
        options: Additional sink-specific options.
    """

    type: Literal["file", "console", "memory", "null"] = "console"
    path: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_file_sink_has_path(self) -> "SinkSchema":
        """Validate that file sinks have a path."""
        if self.type == "file" and not self.path:
            raise ValueError("File sink requires 'path' to be set")
        return self


class ObservabilitySchema(BaseModel):
    """Configuration for tracing.

    Attributes:
        level: Trace level (off, minimal, normal, verbose).
        sinks: List of sink configurations.
    """

    level: Literal["off", "minimal", "normal", "verbose"] = "off"
    sinks: List[SinkSchema] = Field(default_factory=list)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        # YAML 1.1 reads a bare `off` as False
        if v is False:
            return "off"
        return v.lower() if isinstance(v, str) else v


class InterpreterSchema(BaseModel):
    """Safety bounds and debugging for the flow interpreter.

    Attributes:
        max_loop_iterations: Iterations any single loop may run.
        max_steps: Synchronous steps allowed between two suspensions.
        debug: Print every node transition.
    """

    max_loop_iterations: int = Field(default=10_000, gt=0)
    max_steps: int = Field(default=100_000, gt=0)
    debug: bool = False


class LoggingSchema(BaseModel):
    """Configuration for standard library logging.

    Attributes:
        level: Root log level.
        format: Log record format string.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class ConfigSchema(BaseModel):
    """Root configuration schema.

    Attributes:
        version: Configuration file version (currently "1.0").
        interpreter: Interpreter bounds.
        logging: Logging setup.
        observability: Trace level and sinks.
    """

    version: str = "1.0"
    interpreter: InterpreterSchema = Field(default_factory=InterpreterSchema)
    logging: LoggingSchema = Field(default_factory=LoggingSchema)
    observability: ObservabilitySchema = Field(default_factory=ObservabilitySchema)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate configuration version."""
        supported = {"1.0"}
        if v not in supported:
            raise ValueError(
                f"Unsupported config version: {v}. Supported: {supported}"
            )
        return v
