"""CLI entry point for turnpath.

Provides command-line interface for:
- Validating configuration files
- Inspecting a flow definition and a saved position
- Playing a demo flow with automatic moves
- Displaying version information

Usage:
    turnpath validate -c turnpath.yaml
    turnpath inspect --flow mygame.flows:main --position saved.json
    turnpath debug --players 3 --rounds 2 --debug
    turnpath version
"""

import argparse
import sys
from typing import List, Optional


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="turnpath",
        description="Resumable control flow for turn-based games",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a configuration file",
    )
    validate_parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to YAML configuration file",
    )

    # inspect command
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the structure and position of a flow",
    )
    inspect_parser.add_argument(
        "--flow",
        required=True,
        help="Flow definition as module:attribute",
    )
    inspect_parser.add_argument(
        "--position",
        help="JSON file with a serialized position (default: start the flow)",
    )
    inspect_parser.add_argument(
        "-p", "--players",
        type=int,
        default=2,
        help="Number of players (default: 2)",
    )
    inspect_parser.add_argument(
        "-c", "--config",
        help="Path to YAML configuration file",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    # debug command
    debug_parser = subparsers.add_parser(
        "debug",
        help="Play a demo flow with automatic moves",
    )
    debug_parser.add_argument(
        "-p", "--players",
        type=int,
        default=2,
        help="Number of players (default: 2)",
    )
    debug_parser.add_argument(
        "-r", "--rounds",
        type=int,
        default=2,
        help="Number of rounds (default: 2)",
    )
    debug_parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Show every node transition",
    )
    debug_parser.add_argument(
        "-c", "--config",
        help="Path to YAML configuration file",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        from turnpath.cli.commands.version import cmd_version
        return cmd_version()

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "validate":
        from turnpath.cli.commands.validate import cmd_validate
        return cmd_validate(config_path=args.config)

    elif args.command == "inspect":
        from turnpath.cli.commands.inspect import cmd_inspect
        return cmd_inspect(
            flow=args.flow,
            position_path=args.position,
            players=args.players,
            config_path=args.config,
        )

    elif args.command == "version":
        from turnpath.cli.commands.version import cmd_version
        return cmd_version()

    elif args.command == "debug":
        from turnpath.cli.commands.debug import cmd_debug
        return cmd_debug(
            players=args.players,
            rounds=args.rounds,
            debug=args.debug,
            config_path=args.config,
        )

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
