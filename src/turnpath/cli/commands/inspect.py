"""Inspect command: show a flow definition and where a position stands.

Usage:
    turnpath inspect --flow mygame.flows:main
    turnpath inspect --flow mygame.flows:main --position saved.json --players 4
"""

import importlib
import json
import sys
from pathlib import Path
from typing import Any, Optional

from turnpath.config import ConfigLoadError, FlowSettings, load_yaml_config
from turnpath.flow import FlowDriver, FlowError
from turnpath.players import PlayerCollection


def load_flow(reference: str) -> Any:
    """Import a flow definition given as ``module:attribute``."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Flow must be given as module:attribute, got '{reference}'")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target


def cmd_inspect(
    flow: str,
    position_path: Optional[str] = None,
    players: int = 2,
    config_path: Optional[str] = None,
) -> int:
    """Print the compiled tree, the active path and the visualization.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    try:
        settings = FlowSettings()
        if config_path:
            settings = FlowSettings.from_config(load_yaml_config(config_path))
        definition = load_flow(flow)
    except (ConfigLoadError, FileNotFoundError, ImportError, AttributeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    rotation = PlayerCollection.of(*(f"Player {i + 1}" for i in range(players)))

    try:
        driver = FlowDriver(definition, players=rotation, settings=settings)
        print("[Definition]")
        print(driver.graph.print_ascii())

        if position_path:
            branch = json.loads(Path(position_path).read_text(encoding="utf-8"))
            driver.restore(branch)
        else:
            driver.start()
    except (FlowError, OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n[Active path]")
    print(driver.stacktrace())

    request = driver.awaiting
    if request is not None:
        print(f"\n[Awaiting] {', '.join(request.action_names)} from players {request.players}")
    elif driver.is_complete:
        print("\n[Complete]")

    print("\n[Position]")
    print(json.dumps(driver.branch_json(), indent=2))
    print("\n[Visualization]")
    print(json.dumps(driver.visualize(), indent=2))
    return 0
