"""Configuration system for turnpath.

Provides YAML-based configuration with:
- Pydantic schema validation
- Environment variable substitution (${VAR} and ${VAR:-default})
- Conversion to runtime FlowSettings

Example YAML config:
    version: "1.0"
    interpreter:
      max_loop_iterations: 10000
      max_steps: 100000
    logging:
      level: info
    observability:
      level: normal
      sinks:
        - type: file
          path: "${LOG_DIR:-./logs}/trace.jsonl"

Example usage:
    >>> from turnpath.config import load_yaml_config, FlowSettings
    >>> settings = FlowSettings.from_config(load_yaml_config("turnpath.yaml"))
"""

from turnpath.config.schema import (
    ConfigSchema,
    InterpreterSchema,
    LoggingSchema,
    ObservabilitySchema,
    SinkSchema,
)
from turnpath.config.loader import (
    load_yaml_config,
    load_yaml_string,
    substitute_env_vars,
    ConfigLoadError,
)
from turnpath.config.settings import FlowSettings, apply_config, create_sink

__all__ = [
    # Schema models
    "ConfigSchema",
    "InterpreterSchema",
    "LoggingSchema",
    "ObservabilitySchema",
    "SinkSchema",
    # Loader
    "load_yaml_config",
    "load_yaml_string",
    "substitute_env_vars",
    "ConfigLoadError",
    # Runtime
    "FlowSettings",
    "apply_config",
    "create_sink",
]
