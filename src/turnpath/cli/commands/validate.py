"""Validate command for turnpath CLI."""

import sys
from pathlib import Path

from turnpath.config import load_yaml_config, ConfigLoadError


def cmd_validate(config_path: str) -> int:
    """Validate a configuration file.

    Returns:
        Exit code (0 for success, 1 for validation errors).
    """
    path = Path(config_path)

    if not path.exists():
        print(f"Error: Configuration file not found: {path}", file=sys.stderr)
        return 1

    print(f"Validating: {path}")

    try:
        config = load_yaml_config(path)
    except ConfigLoadError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return 1

    print(f"  Version: {config.version}")
    print("  Interpreter:")
    print(f"    max_loop_iterations: {config.interpreter.max_loop_iterations}")
    print(f"    max_steps: {config.interpreter.max_steps}")
    print(f"    debug: {config.interpreter.debug}")
    print(f"  Logging: {config.logging.level}")
    print(f"  Observability: {config.observability.level}")

    for sink in config.observability.sinks:
        sink_info = sink.type
        if sink.path:
            sink_info += f" -> {sink.path}"
        print(f"    - {sink_info}")

    print("\nConfiguration is valid.")
    return 0
