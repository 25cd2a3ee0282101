"""YAML configuration loader with environment variable substitution.

String values may reference the environment:
    ${VAR}          - must be set, otherwise loading fails
    ${VAR:-default} - falls back to ``default``

Example:
    >>> config = load_yaml_config("turnpath.yaml")
    >>> config.interpreter.max_loop_iterations
    10000
"""

import os
import re
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from turnpath.config.schema import ConfigSchema


class ConfigLoadError(Exception):
    """A configuration file could not be read, expanded or validated."""


ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _lookup(match: "re.Match[str]") -> str:
    name, default = match.group(1), match.group(2)
    value = os.environ.get(name, default)
    if value is None:
        raise KeyError(f"Environment variable '{name}' is not set and has no default")
    return value


def substitute_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` references in every string of a parsed document.

    Mappings and lists are walked recursively; other values pass through.

    Raises:
        KeyError: If a referenced variable is unset and has no default.

    Example:
        >>> os.environ["TRACE_DIR"] = "/tmp"
        >>> substitute_env_vars({"sinks": [{"path": "${TRACE_DIR}/trace.jsonl"}]})
        {'sinks': [{'path': '/tmp/trace.jsonl'}]}
    """
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(_lookup, value)
    if isinstance(value, dict):
        return {key: substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


def _build(text: str, source: str, substitute_vars: bool) -> ConfigSchema:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {source}: {e}") from e

    if document is None:
        raise ConfigLoadError(f"Empty configuration: {source}")
    if not isinstance(document, dict):
        raise ConfigLoadError(
            f"Configuration in {source} must be a dictionary, "
            f"got {type(document).__name__}"
        )

    if substitute_vars:
        try:
            document = substitute_env_vars(document)
        except KeyError as e:
            raise ConfigLoadError(f"Environment variable error in {source}: {e}") from e

    try:
        return ConfigSchema.model_validate(document)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration in {source}: {e}") from e


def load_yaml_config(
    path: Union[str, Path],
    substitute_vars: bool = True,
) -> ConfigSchema:
    """Load and validate a YAML configuration file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed or validated.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    return _build(path.read_text(encoding="utf-8"), str(path), substitute_vars)


def load_yaml_string(
    content: str,
    substitute_vars: bool = True,
) -> ConfigSchema:
    """Load and validate configuration held in a string."""
    return _build(content, "<string>", substitute_vars)
